#!/usr/bin/env python3
"""
CDK app deploying the Organization API.

    STAGE=dev USER_POOL_ARN=arn:aws:cognito-idp:... HANDLER=organization.handler \
        CODE_PATH=examples cdk deploy --app "python examples/cdk_app.py"
"""

import aws_cdk as cdk
from organization import api

from httpapi_gateway.deploy.stack import ApiGatewayStack
from httpapi_gateway.settings import get_settings

settings = get_settings()

app = cdk.App()
ApiGatewayStack(
    app,
    f"{settings.STAGE}-organization-api",
    api=api,
    env=cdk.Environment(region=settings.REGION),
)
app.synth()
