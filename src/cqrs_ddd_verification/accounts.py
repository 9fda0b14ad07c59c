"""Resolution of a subject's delivery destination from its account."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .domain.enums import Channel
from .exceptions import DestinationUnavailableError, SubjectNotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .domain.enums import SubjectType
    from .ports import AccountContact, IAccountDirectory

logger = logging.getLogger(__name__)


class AccountResolver:
    """Maps each :class:`SubjectType` to the directory that owns its accounts.

    Example:
        ```python
        resolver = AccountResolver({
            SubjectType.STAFF_ACCOUNT: staff_directory,
            SubjectType.CUSTOMER_ACCOUNT: customer_directory,
        })
        phone = await resolver.resolve_destination(
            tenant_id, subject_id, SubjectType.CUSTOMER_ACCOUNT, Channel.SMS
        )
        ```
    """

    def __init__(self, directories: Mapping[SubjectType, IAccountDirectory]) -> None:
        self._directories = dict(directories)

    async def get_contact(
        self, tenant_id: str, subject_id: str, subject_type: SubjectType
    ) -> AccountContact:
        """Load the account's contact details.

        Raises:
            SubjectNotFoundError: If no directory serves ``subject_type`` or
                the account does not exist in the tenant.
        """
        directory = self._directories.get(subject_type)
        if directory is None:
            logger.warning("No account directory for %s", subject_type.value)
            raise SubjectNotFoundError(subject_type.value, subject_id)
        contact = await directory.get_contact(tenant_id, subject_id)
        if contact is None or contact.tenant_id != tenant_id:
            raise SubjectNotFoundError(subject_type.value, subject_id)
        return contact

    async def resolve_destination(
        self,
        tenant_id: str,
        subject_id: str,
        subject_type: SubjectType,
        channel: Channel,
    ) -> str:
        """Return the phone (SMS, WhatsApp) or e-mail (EMAIL) on file.

        Raises:
            SubjectNotFoundError: If the account cannot be found.
            DestinationUnavailableError: If the account has no destination
                for ``channel``.
        """
        contact = await self.get_contact(tenant_id, subject_id, subject_type)
        destination = contact.email if channel is Channel.EMAIL else contact.phone
        if not destination:
            raise DestinationUnavailableError(subject_id, channel.value)
        return destination


__all__: list[str] = ["AccountResolver"]
