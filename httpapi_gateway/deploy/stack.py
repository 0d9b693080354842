"""
CDK stack deploying an `HttpApi` as an API Gateway `SpecRestApi`.

Each operation gets a dedicated Lambda function, yet all functions share
one handler; the function's ``OPERATION_ID`` environment variable tells the
handler which entry of its dispatch table the binding stands for.

Usage:
    app = cdk.App()
    ApiGatewayStack(app, "OrganizationApi", api=api, user_pool_arn=pool.user_pool_arn)
    app.synth()
"""

import logging
from typing import Any, Dict, Optional

import aws_cdk as cdk
from aws_cdk import CfnOutput, Stack
from aws_cdk import aws_apigateway as apigateway
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as lambda_
from constructs import Construct

from httpapi_gateway.deploy.augment import build_gateway_spec
from httpapi_gateway.deploy.cors import CorsPolicy
from httpapi_gateway.endpoints import HttpApi
from httpapi_gateway.exceptions import SynthesisError
from httpapi_gateway.settings import Settings, get_settings

logger = logging.getLogger(__name__)

PERMISSION_ID = "allow-api-gateway"


class LambdaFunctionBinder:
    """`FunctionBinder` creating one `aws_lambda.Function` per operation."""

    def __init__(
        self,
        scope: Construct,
        *,
        handler: str,
        code: lambda_.Code,
        runtime: lambda_.Runtime = lambda_.Runtime.PYTHON_3_12,
        environment: Optional[Dict[str, str]] = None,
    ):
        self.scope = scope
        self.handler = handler
        self.code = code
        self.runtime = runtime
        self.environment = dict(environment or {})

    def provision(self, resource_name: str) -> lambda_.Function:
        return lambda_.Function(
            self.scope,
            resource_name,
            handler=self.handler,
            runtime=self.runtime,
            code=self.code,
            environment={**self.environment, "OPERATION_ID": resource_name},
        )

    def function_arn(self, function: lambda_.Function) -> str:
        return function.function_arn

    def grant_invoke(self, function: lambda_.Function, principal: str) -> Any:
        function.add_permission(PERMISSION_ID, principal=iam.ServicePrincipal(principal))
        return function.node.try_find_child(PERMISSION_ID)


class ApiGatewayStack(Stack):
    """
    Synthesizes the gateway spec and stands up the REST API from it.

    Attributes:
        spec: The augmented OpenAPI document deployed inline
        integrations: One `IntegrationRecord` per operation
        rest_api: The `SpecRestApi`
        url: Public URL of the deployed stage
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        api: HttpApi,
        user_pool_arn: Optional[str] = None,
        settings: Optional[Settings] = None,
        code: Optional[lambda_.Code] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        settings = settings or get_settings()
        user_pool_arn = user_pool_arn or settings.USER_POOL_ARN
        if not user_pool_arn:
            raise SynthesisError("A Cognito user pool ARN is required for the API authorizer")

        binder = LambdaFunctionBinder(
            self,
            handler=settings.HANDLER,
            code=code or lambda_.Code.from_asset(settings.CODE_PATH),
            environment={"STAGE": settings.STAGE, "LOG_LEVEL": settings.LOG_LEVEL},
        )

        region = settings.REGION if cdk.Token.is_unresolved(self.region) else self.region

        self.spec, self.integrations = build_gateway_spec(
            api,
            binder=binder,
            region=region,
            user_pool_arn=user_pool_arn,
            cors_policy=CorsPolicy.for_stage(settings.is_production, settings.PRODUCTION_ORIGINS),
        )
        logger.info("Deploying %s with %d operations", api.title, len(self.integrations))

        self.rest_api = apigateway.SpecRestApi(
            self,
            "Api",
            rest_api_name=api.title,
            api_definition=apigateway.ApiDefinition.from_inline(self.spec),
            deploy=True,
        )
        self.url = self.rest_api.url

        CfnOutput(self, "ApiUrl", value=self.rest_api.url)
