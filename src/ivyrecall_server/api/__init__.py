"""HTTP API routers, registered as multi-extensions and mounted by the routes plugin."""

EXT_MULTI_API_ROUTERS = 'ivyrecall-server-api-routers'
