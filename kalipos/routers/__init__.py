"""FastAPI routers: storefront API and webhooks."""
