"""Core summarise machinery: validation, method selection, dispatch and materialization."""
