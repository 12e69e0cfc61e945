"""GraphQL schema and resolvers for the users service.

Each resolver maps one GraphQL field onto exactly one store statement or one
event-bus operation. Store failures are not caught here; Strawberry reports
them as field errors in the response.
"""

from typing import AsyncGenerator, List, Optional

import strawberry
from strawberry.fastapi import BaseContext
from strawberry.types import Info

from .database import Database
from .events import USER_CREATED, EventBus
from .models import User


class GraphQLContext(BaseContext):
    """Per-request context carrying the process-wide store and event bus."""

    def __init__(self, database: Database, bus: EventBus) -> None:
        super().__init__()
        self.database = database
        self.bus = bus


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    name: str
    email: str
    created_at: str

    @classmethod
    def from_model(cls, user: User) -> "UserType":
        return cls(
            id=strawberry.ID(str(user.id)),
            name=user.name,
            email=user.email,
            created_at=user.created_at,
        )


@strawberry.type
class Query:
    @strawberry.field
    async def users(self, info: Info[GraphQLContext, None]) -> List[UserType]:
        users = await info.context.database.list_users()
        return [UserType.from_model(user) for user in users]

    @strawberry.field
    async def user(self, info: Info[GraphQLContext, None], name: str) -> Optional[UserType]:
        user = await info.context.database.find_user_by_name(name)
        if user is None:
            return None
        return UserType.from_model(user)

    @strawberry.field
    async def user_email(self, info: Info[GraphQLContext, None], email: str) -> Optional[str]:
        return await info.context.database.find_email_by_email(email)


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def create_user(self, info: Info[GraphQLContext, None], name: str, email: str) -> UserType:
        user = UserType.from_model(await info.context.database.insert_user(name, email))
        # Only reached once the insert has been acknowledged by the store.
        info.context.bus.publish(USER_CREATED, user)
        return user


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def user_created(self, info: Info[GraphQLContext, None]) -> AsyncGenerator[UserType, None]:
        async with info.context.bus.subscribe(USER_CREATED) as events:
            async for user in events:
                yield user


schema = strawberry.Schema(query=Query, mutation=Mutation, subscription=Subscription)


__all__ = ["GraphQLContext", "Mutation", "Query", "Subscription", "UserType", "schema"]
