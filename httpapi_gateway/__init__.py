"""
httpapi-gateway - serve a declarative HTTP API from API Gateway + Lambda.
"""

from httpapi_gateway.applications import HttpApiApp as HttpApiApp
from httpapi_gateway.applications import create_lambda_handler as create_lambda_handler
from httpapi_gateway.context import RequestContext as RequestContext
from httpapi_gateway.endpoints import ApiGroup as ApiGroup
from httpapi_gateway.endpoints import Endpoint as Endpoint
from httpapi_gateway.endpoints import HttpApi as HttpApi
from httpapi_gateway.exceptions import ApiError as ApiError
from httpapi_gateway.exceptions import ForbiddenException as ForbiddenException
from httpapi_gateway.exceptions import HTTPException as HTTPException
from httpapi_gateway.exceptions import UnknownException as UnknownException
from httpapi_gateway.identity import Identity as Identity
from httpapi_gateway.openapi_schema import get_openapi_schema as get_openapi_schema
from httpapi_gateway.request import LambdaRequest as LambdaRequest
from httpapi_gateway.response import JSONResponse as JSONResponse
from httpapi_gateway.response import PlainTextResponse as PlainTextResponse
from httpapi_gateway.response import Response as Response
from httpapi_gateway.types import LambdaEvent as LambdaEvent

__version__ = "0.1.0"
