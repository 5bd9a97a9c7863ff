#=========================================================================
# CacheExceptions
#=========================================================================
# Errors raised synchronously by the cache model. Data corruption and
# bank conflicts are not exceptions; they are reported in the per-port
# response.

class ConfigError( ValueError ):
  """Invalid parameter combination, raised when a config is built."""

class InvalidRequest( ValueError ):
  """Malformed request, rejected before arbitration."""
