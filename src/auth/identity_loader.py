"""Load the local member from the keys directory, or create one on first run."""

import json
import logging
import secrets
from pathlib import Path
from typing import Dict, Optional

from ..data.token_client import Alias, Member, TokenClient, TokenClientError

logger = logging.getLogger(__name__)

RECORD_FILENAME = 'member.json'
ALIAS_EMAIL_SUFFIX = '-test+noverify@example.com'


class IdentityLoader:
    """Resolves which member this app acts as.

    The member id is kept in ``member.json`` (cluster -> member id). Key
    directories written before the record existed are still understood: a key
    file named ``<cluster>_<id>`` is read back as the member id ``<cluster>:<id>``.
    """

    def __init__(self, keys_dir: Path, client: TokenClient, redirect_url: str):
        self.keys_dir = Path(keys_dir)
        self.client = client
        self.redirect_url = redirect_url

    @property
    def record_path(self) -> Path:
        return self.keys_dir / RECORD_FILENAME

    async def load_or_create(self) -> Member:
        """
        Load the stored member, or create and register a new one.

        The recorded member is tried first, then the first key file whose name
        encodes a member id. A recorded member whose key material is gone is
        dropped from the record. Loaded members get the current redirect URL
        registered, since it is derived from configuration that may change
        between runs.

        Returns:
            The member this app acts as.

        Raises:
            OSError: If the keys directory cannot be created or listed.
            ValueError: If the identity record is malformed.
        """
        self.keys_dir.mkdir(parents=True, exist_ok=True)

        member = await self._load_recorded_member()
        if member is None:
            member_id = self._scan_key_files()
            if member_id:
                logger.info(f"Loading member {member_id} from key file in {self.keys_dir}")
                member = await self.client.get_member(member_id)

        if member is None:
            member = await self._create_member()
        else:
            await member.add_redirect_urls([self.redirect_url])

        self._write_record(member.member_id)
        return member

    async def _load_recorded_member(self) -> Optional[Member]:
        """Load the member named in the record for this cluster, if it still exists."""
        member_id = self._read_record().get(self.client.cluster)
        if not member_id:
            return None
        logger.info(f"Loading member {member_id} from {self.record_path}")
        try:
            return await self.client.get_member(member_id)
        except TokenClientError as e:
            logger.warning(f"Recorded member {member_id} cannot be loaded ({e}); dropping it from the record")
            self._forget_record()
            return None

    def _read_record(self) -> Dict[str, str]:
        """Read the cluster -> member id record, empty when it does not exist yet."""
        if not self.record_path.exists():
            return {}
        try:
            record = json.loads(self.record_path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Identity record {self.record_path} is not valid JSON: {e}")
        if not isinstance(record, dict):
            raise ValueError(f"Identity record {self.record_path} must be a JSON object")
        return record

    def _write_record(self, member_id: str) -> None:
        record = self._read_record()
        if record.get(self.client.cluster) == member_id:
            return
        record[self.client.cluster] = member_id
        self.record_path.write_text(json.dumps(record, indent=2, sort_keys=True))
        logger.info(f"Saved identity record to {self.record_path}")

    def _forget_record(self) -> None:
        record = self._read_record()
        if record.pop(self.client.cluster, None) is not None:
            self.record_path.write_text(json.dumps(record, indent=2, sort_keys=True))

    def _scan_key_files(self) -> Optional[str]:
        """
        Recover a member id from key file names.

        Returns:
            Member id of the first key file (``a_b`` becomes ``a:b``), or None.
        """
        for name in sorted(p.name for p in self.keys_dir.iterdir()):
            if name == RECORD_FILENAME or '_' not in name:
                continue
            return name.replace('_', ':')
        return None

    async def _create_member(self) -> Member:
        """Create a member with a fresh test alias and register the redirect URL."""
        email = secrets.token_urlsafe(16).lower() + ALIAS_EMAIL_SUFFIX
        logger.info(f"No stored member found, creating member with alias {email}")
        member = await self.client.create_member(Alias(value=email))
        await member.add_redirect_urls([self.redirect_url])
        return member
