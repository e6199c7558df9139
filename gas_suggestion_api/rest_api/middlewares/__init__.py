from gas_suggestion_api.rest_api.middlewares.route_logger import RouteLoggerMiddleware

__all__ = ['RouteLoggerMiddleware']
