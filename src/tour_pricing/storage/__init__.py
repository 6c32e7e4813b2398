"""Storage subpackage - local cache, remote store and the repository over both."""
