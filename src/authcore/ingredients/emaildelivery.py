"""Email delivery capability and the requests it handles.

:data:`EmailDeliveryRequest` is a tagged union over the three messages the
core's auth flows send, discriminated on the ``type`` field:

* :class:`EmailVerification` -- confirm ownership of an address.
* :class:`PasswordReset` -- deliver a password reset link.
* :class:`PasswordlessLogin` -- deliver a one-time code and/or magic link.

Requests are built by the business flow, passed by value into
:meth:`EmailDelivery.send_email`, and discarded afterwards.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from authcore.models import UserIdentity
from authcore.recipes.base import Capability


class EmailVerification(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["email_verification"] = "email_verification"
    user: UserIdentity
    email_verify_link: str


class PasswordReset(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["password_reset"] = "password_reset"
    user: UserIdentity
    password_reset_link: str


class PasswordlessLogin(BaseModel):
    """Passwordless sign-in message.

    At least one of ``user_input_code`` and ``url_with_link_code`` is set.
    ``code_lifetime`` is in milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["passwordless_login"] = "passwordless_login"
    email: str
    user_input_code: Optional[str] = None
    url_with_link_code: Optional[str] = None
    code_lifetime: int = Field(ge=0)
    pre_auth_session_id: str

    @model_validator(mode="after")
    def _check_code_or_link(self) -> PasswordlessLogin:
        if self.user_input_code is None and self.url_with_link_code is None:
            raise ValueError("Passwordless login needs a user input code or a link")
        return self


EmailDeliveryRequest = Annotated[
    Union[EmailVerification, PasswordReset, PasswordlessLogin],
    Field(discriminator="type"),
]

_request_adapter: TypeAdapter[EmailDeliveryRequest] = TypeAdapter(EmailDeliveryRequest)


def parse_email_request(data: Any) -> EmailDeliveryRequest:
    """Validate a raw mapping into the matching :data:`EmailDeliveryRequest` variant.

    Raises:
        pydantic.ValidationError: If ``type`` is unknown or fields are invalid.
    """
    return _request_adapter.validate_python(data)


def recipient(request: EmailDeliveryRequest) -> str:
    """Address the message for *request* is sent to."""
    if isinstance(request, (EmailVerification, PasswordReset)):
        return request.user.email
    if isinstance(request, PasswordlessLogin):
        return request.email
    raise TypeError(f"Unknown email delivery request: {type(request).__name__}")


def describe_email(request: EmailDeliveryRequest) -> str:
    """Default subject line for *request*."""
    if isinstance(request, EmailVerification):
        return "Verify your email address"
    if isinstance(request, PasswordReset):
        return "Reset your password"
    if isinstance(request, PasswordlessLogin):
        minutes = request.code_lifetime // 60000
        return f"Your sign-in link (valid for {minutes} minutes)"
    raise TypeError(f"Unknown email delivery request: {type(request).__name__}")


class EmailDelivery(Capability):
    """Capability for recipes that deliver auth emails."""

    @abstractmethod
    async def send_email(
        self,
        request: EmailDeliveryRequest,
        user_context: dict[str, Any],
    ) -> None:
        """Deliver the message described by *request*.

        Args:
            request: One of the :data:`EmailDeliveryRequest` variants.
            user_context: Free-form per-call data from the caller, passed
                through untouched.

        Raises:
            Exception: Any failure; the registry wraps it in
                :class:`~authcore.exceptions.RecipeError`.
        """
        ...
