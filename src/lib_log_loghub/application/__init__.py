"""Application layer: ports and use cases of the Loghub appender."""
