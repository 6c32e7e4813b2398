"""Services subpackage - commission, propagation and snapshot operations."""
