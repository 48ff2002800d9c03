"""Domain layer for estimatekit application.

Services live in their own modules (``estimatekit.domain.project``,
``estimatekit.domain.payment`` ...) and are imported from there. This package
does not re-export them, because the database layer imports
``estimatekit.domain.entities`` while the services import the database layer.
"""
