"""FastAPI web application serving the GraphQL API."""
