"""ScaleX - swap HTTP API routes between Lambda and HTTP backends per region.

ScaleX reconciles the routes of an API Gateway HTTP API against scaling
policies declared on a service's ``httpApi`` events:

- Routes whose policy covers the target region are served by an HTTP_PROXY
  integration pointing at a horizontally-scaled backend
- Other routes stay on (or return to) their AWS_PROXY Lambda integration
- Integrations created by ScaleX are recorded in S3 so removal deletes
  exactly what was added
"""

from scalex.config.loader import ConfigLoader
from scalex.lib.errors import ConfigError, ScalexError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigLoader",
    "ConfigError",
    "ScalexError",
]
