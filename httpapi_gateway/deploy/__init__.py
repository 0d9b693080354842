"""
Deploy-time synthesis: OpenAPI spec -> API Gateway spec -> CDK stack.

`stack` imports aws-cdk-lib; import it explicitly so the Lambda runtime
never has to.
"""

from httpapi_gateway.deploy.augment import FunctionBinder as FunctionBinder
from httpapi_gateway.deploy.augment import IntegrationRecord as IntegrationRecord
from httpapi_gateway.deploy.augment import add_security_scheme as add_security_scheme
from httpapi_gateway.deploy.augment import bind_integrations as bind_integrations
from httpapi_gateway.deploy.augment import build_gateway_spec as build_gateway_spec
from httpapi_gateway.deploy.augment import dump_spec as dump_spec
from httpapi_gateway.deploy.augment import require_authorizer as require_authorizer
from httpapi_gateway.deploy.cors import CorsPolicy as CorsPolicy
from httpapi_gateway.deploy.cors import add_cors_preflight as add_cors_preflight
