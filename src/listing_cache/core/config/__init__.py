"""
Configuration Module

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants, stage identifiers and header names

Usage:
------
```python
from listing_cache.core.config import get_settings
from listing_cache.core.config.constants import Stage

settings = get_settings()
ttl = settings.cache.CACHE_DEFAULT_TTL
```

Environment Variables:
---------------------
```bash
REDIS_URL=redis://localhost:6379/0
CACHE_DEFAULT_TTL=60
LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from .settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
