"""Branch sign-in flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from orderpad.constant import MSG_FILL_ALL_FIELDS
from orderpad.errors import InvalidCredentialsError, OrderValidationError
from orderpad.models import AuthSession, Branch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignInResult:
    """A signed-in backend user bound to its branch."""

    session: AuthSession
    branch: Branch
    provisioned: bool = False


class BranchSignIn:
    """Resolve a branch email and password to a backend session.

    The branch row is looked up first so an unknown email never reaches the
    auth service. The supplied password is the credential: it is checked by
    the auth service, which stores it hashed. On first use the backend user
    is registered with the same credentials when provisioning is enabled.
    """

    def __init__(self, backend, provision_on_first_use: bool = True) -> None:
        self.backend = backend
        self.provision_on_first_use = provision_on_first_use

    async def sign_in(self, email: str, password: str) -> SignInResult:
        email = email.strip()
        if not email or not password:
            raise OrderValidationError(MSG_FILL_ALL_FIELDS)

        branch_row = await self.backend.find_branch_by_email(email)
        if branch_row is None:
            logger.info("sign_in_rejected reason=unknown_branch email=%s", email)
            raise InvalidCredentialsError()
        branch = Branch.from_row(branch_row)

        provisioned = False
        session = await self.backend.sign_in(email, password)
        if session is None:
            if not self.provision_on_first_use:
                logger.info("sign_in_rejected reason=bad_password branch_id=%s", branch.id)
                raise InvalidCredentialsError()
            session = await self._provision(email, password, branch)
            provisioned = True

        await self.backend.upsert_branch_session(session.user_id, branch.id)
        logger.info(
            "sign_in_ok branch_id=%s user_id=%s provisioned=%s",
            branch.id,
            session.user_id,
            provisioned,
        )
        return SignInResult(session=session, branch=branch, provisioned=provisioned)

    async def _provision(self, email: str, password: str, branch: Branch) -> AuthSession:
        session = await self.backend.sign_up(email, password)
        if session is None:
            # Existing user with a different password, or sign-up awaiting confirmation.
            logger.info("sign_in_rejected reason=no_session branch_id=%s", branch.id)
            raise InvalidCredentialsError()
        return session
