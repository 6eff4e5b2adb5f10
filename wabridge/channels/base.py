from __future__ import annotations
import abc
from wabridge.domain.models import CredentialBundle, DispatchResult

class MessageSender(abc.ABC):
    """Outbound side of a messaging provider.

    Senders never raise for provider or network failures; they report them
    through the returned DispatchResult.
    """

    @abc.abstractmethod
    async def send_text(self, bundle: CredentialBundle, to: str, text: str) -> DispatchResult:
        ...

    async def aclose(self) -> None:
        return
