"""estimatekit: construction cost estimates with per-view pricing, acts and payments."""

__version__ = "0.1.0"


# The CLI pulls in the database layer; load it only when ``main`` is asked for
def __getattr__(name):
    if name == "main":
        from estimatekit.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
