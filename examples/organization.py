"""
Organization API: one group behind the Cognito authorizer.

Shared by the Lambda functions (``handler``) and the deploy stack (``api``).
"""

import random

from pydantic import BaseModel

from httpapi_gateway import (
    ApiGroup,
    Endpoint,
    ForbiddenException,
    HttpApi,
    HttpApiApp,
    Identity,
    UnknownException,
    create_lambda_handler,
)


class SeedPath(BaseModel):
    seed: int


class RandomUser(BaseModel):
    name: str
    randomAge: int


FetchRandomUser = (
    Endpoint.get("FetchRandomUser", "/users/random/:seed")
    .set_path(SeedPath)
    .set_success(RandomUser)
    .add_error(UnknownException)
    .add_error(ForbiddenException)
)

organization = ApiGroup("Organization").annotate_security("Basic").add(FetchRandomUser)

api = HttpApi().add_group(organization, prefix="/organization").annotate(title="ApiGateway from HttpApi")

app = HttpApiApp(api)


@app.handler("Organization.FetchRandomUser")
async def fetch_random_user(path: SeedPath, identity: Identity) -> RandomUser:
    if identity.in_group("banned"):
        raise ForbiddenException(f"{identity.username} may not fetch users")
    return RandomUser(name="John Doe", randomAge=random.Random(path.seed).randrange(100))


handler = create_lambda_handler(app)
