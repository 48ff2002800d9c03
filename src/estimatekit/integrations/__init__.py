"""Concrete adapters for external services."""

from estimatekit.integrations.invoice_provider import HttpInvoiceProvider

__all__ = ["HttpInvoiceProvider"]
