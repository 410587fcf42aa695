"""Database session and unit of work, the Redis JSON cache and the activity log store."""
