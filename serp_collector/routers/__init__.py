"""HTTP routers: worker-facing and admin."""
