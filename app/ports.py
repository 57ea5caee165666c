"""Abstract interfaces for the chat host capabilities the service consumes.

The transcription core only depends on `PostStore`, `FileStore` and
`ChannelDirectory`; upload, mobile and command plumbing use the rest.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


VOICE_MESSAGE_POST_TYPE = "custom_voice_message"

PROP_DURATION = "voice_duration"
PROP_MIME_TYPE = "voice_mime_type"
PROP_TRANSCRIPT = "voice_transcript"


class HostError(Exception):
    """A host API call failed."""


class NotFoundError(HostError):
    """The requested host object does not exist."""


@dataclass
class PostRecord:
    """Host-independent view of a post."""

    id: str
    user_id: str
    channel_id: str
    root_id: str | None = None
    type: str = ""
    message: str = ""
    file_ids: list[str] = field(default_factory=list)
    props: dict = field(default_factory=dict)

    @property
    def is_voice_message(self) -> bool:
        return self.type == VOICE_MESSAGE_POST_TYPE and bool(self.file_ids)


class PostStore(ABC):
    """Post CRUD."""

    @abstractmethod
    def get_post(self, post_id: str) -> PostRecord:
        """
        Fetches a post by ID.

        Raises:
            NotFoundError: If no such post exists.
        """

    @abstractmethod
    def create_post(
        self,
        user_id: str,
        channel_id: str,
        root_id: str | None,
        post_type: str,
        file_ids: list[str],
        props: dict,
        message: str = "",
    ) -> PostRecord:
        """Creates a post and returns it with its assigned ID."""

    @abstractmethod
    def set_post_prop(self, post_id: str, key: str, value: str) -> PostRecord:
        """
        Re-reads the post and stores one metadata key on it.

        Raises:
            NotFoundError: If the post no longer exists.
        """


class FileStore(ABC):
    """File storage."""

    @abstractmethod
    def upload_file(self, data: bytes, channel_id: str, filename: str, mime_type: str | None) -> str:
        """Stores the bytes and returns the new file ID."""

    @abstractmethod
    def get_file(self, file_id: str) -> bytes:
        """
        Reads a stored file.

        Raises:
            NotFoundError: If the file is unknown or its bytes are gone.
        """


class ChannelDirectory(ABC):
    """Channel lookups."""

    @abstractmethod
    def is_channel_member(self, channel_id: str, user_id: str) -> bool:
        """Whether the user belongs to the channel."""

    @abstractmethod
    def get_channel_display_name(self, channel_id: str) -> str | None:
        """Human readable channel name, or None when unknown."""


class UserDirectory(ABC):
    """User lookups."""

    @abstractmethod
    def get_user_roles(self, user_id: str) -> str:
        """
        Space separated role names of the user.

        Raises:
            NotFoundError: If the user is unknown.
        """


class KVStore(ABC):
    """Plugin-scoped key-value store."""

    @abstractmethod
    def kv_set(self, key: str, value: bytes) -> None: ...

    @abstractmethod
    def kv_get(self, key: str) -> bytes | None: ...

    @abstractmethod
    def kv_delete(self, key: str) -> bool:
        """Deletes the key. Returns True only for the caller that actually removed it."""


class EphemeralPoster(ABC):
    """Messages visible to one user only."""

    @abstractmethod
    def send_ephemeral_post(self, user_id: str, channel_id: str, message: str) -> str: ...

    @abstractmethod
    def update_ephemeral_post(self, user_id: str, post_id: str, message: str) -> None: ...

    @abstractmethod
    def delete_ephemeral_post(self, user_id: str, post_id: str) -> None: ...


class CommandRegistry(ABC):
    """Slash command registration."""

    @abstractmethod
    def register_command(self, trigger: str, display_name: str, description: str) -> None: ...

    @abstractmethod
    def unregister_command(self, trigger: str) -> None: ...


class HostAPI(PostStore, FileStore, ChannelDirectory, UserDirectory, KVStore, EphemeralPoster, CommandRegistry):
    """Everything the plugin may ask of its host."""
