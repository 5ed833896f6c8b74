"""Smart Scaffolder: natural-language requests to convention-aware source files.

Usage::

    from smart_scaffolder import ScaffoldPipeline, ScaffoldRequest

    pipeline = ScaffoldPipeline()
    result = await pipeline.scaffold(
        ScaffoldRequest(prompt="create a UserProfile component with tests", project_id="web")
    )
"""

__version__ = "0.1.0"

from .config import ScaffolderConfig
from .models import ScaffoldError, ScaffoldRequest, ScaffoldResult
from .pipeline import ScaffoldPipeline

__all__ = [
    "ScaffoldError",
    "ScaffoldPipeline",
    "ScaffoldRequest",
    "ScaffoldResult",
    "ScaffolderConfig",
    "__version__",
]
