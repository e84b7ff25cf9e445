"""
Demonstration web API package.

Fans out to a backend service, a Postgres database and a Redis cache while
emitting OpenTelemetry traces and a ``sum.total`` counter.
"""
