# Request-scoped FastAPI dependencies.
