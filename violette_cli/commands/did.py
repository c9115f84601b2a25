"""
CLI DID Commands

Create, resolve and delete DIDs against an XRPL JSON-RPC node.

create needs a node that allows wallet_propose and sign-and-submit (a
private or standalone rippled); on testnet the new account is funded from
the faucet. Keep the file written by --save-account: it holds the seed
required to update or delete the DID later.

Usage:
    violette did create --id anon-42 [--anonymous] [--save-account account.json]
    violette did resolve did:xrpl:1:r...
    violette did delete did:xrpl:1:r... --account account.json
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from core.config import RuntimeConfig
from core.did.lifecycle import DIDLifecycleManager
from core.did.store import DIDRecordStore, InMemoryRecordStore, JsonFileRecordStore
from core.ledger import XrplRpcGateway
from core.schemas.accounts import LedgerAccount
from core.schemas.did import UserMetadata


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def build_store(config: RuntimeConfig) -> DIDRecordStore:
    if config.storage.records_dir:
        return JsonFileRecordStore(config.storage.records_dir)
    logger.warning("No records_dir configured; identity records will not outlive this command")
    return InMemoryRecordStore()


def save_account(account: LedgerAccount, path: Path) -> None:
    data = account.model_dump()
    data["seed"] = account.seed
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    path.chmod(0o600)


def load_account(path: Path) -> LedgerAccount:
    """
    Raises:
        FileNotFoundError: If the account file does not exist.
        ValueError: If it is not a valid account file.
    """
    try:
        return LedgerAccount.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid account file {path}: {e}") from e


def _run(
    config: RuntimeConfig,
    operation: Callable[[DIDLifecycleManager], Awaitable[Any]],
) -> Any:
    """Run one manager operation on a fresh gateway, then release it."""
    async def runner() -> Any:
        gateway = XrplRpcGateway(config.ledger)
        manager = DIDLifecycleManager.from_config(config, gateway, build_store(config))
        try:
            return await operation(manager)
        finally:
            await gateway.disconnect()
            gateway.http.close()

    return asyncio.run(runner())


def _print_result(result: Any) -> int:
    print(json.dumps(result.to_dict(), indent=2))
    if result.success:
        return EXIT_SUCCESS
    logger.warning("%s: %s", result.error.code, result.error.message)
    return EXIT_RUNTIME_ERROR


def create_cmd(args: Namespace) -> int:
    config: RuntimeConfig = args.runtime_config
    metadata = UserMetadata(anonymized_id=args.id, anonymous_mode=args.anonymous)

    result = _run(config, lambda manager: manager.create(metadata))

    if result.success and result.account is not None and args.save_account:
        save_account(result.account, Path(args.save_account))
        logger.info("Saved controlling account to %s", args.save_account)
    return _print_result(result)


def resolve_cmd(args: Namespace) -> int:
    config: RuntimeConfig = args.runtime_config
    result = _run(config, lambda manager: manager.resolve(args.did))
    return _print_result(result)


def delete_cmd(args: Namespace) -> int:
    config: RuntimeConfig = args.runtime_config
    try:
        account = load_account(Path(args.account))
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    result = _run(config, lambda manager: manager.delete(args.did, account))
    return _print_result(result)
