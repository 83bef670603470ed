"""JSON-RPC transport built on web3.py."""

from typing import Any, Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from ..config.defaults import RuntimeConfig
from ..execution.models import CallResult, ContractHandle
from .artifacts import ArtifactStore
from .base import BaseTransport, TransportPermanentError, TransportRetryableError


class Web3Transport(BaseTransport):
    """
    Signs transactions locally and submits them over JSON-RPC.

    Endpoint, credential and chain id come from the RuntimeConfig passed in;
    the transport never reads process environment.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        artifacts: Optional[ArtifactStore] = None,
        web3: Optional[Web3] = None,
        name: Optional[str] = None
    ):
        super().__init__(name or config.network_name, config.transport)
        self.runtime = config

        if not config.network_endpoint:
            raise TransportPermanentError(
                f"No endpoint configured for network '{config.network_name}'"
            )
        if not config.signing_credential:
            raise TransportPermanentError(
                f"No signing credential configured for network '{config.network_name}'"
            )

        self.web3 = web3 or Web3(Web3.HTTPProvider(
            config.network_endpoint,
            request_kwargs={"timeout": config.transport.timeout_seconds}
        ))
        self.account = Account.from_key(config.signing_credential)
        self.artifacts = artifacts or ArtifactStore(config.artifacts_dir)

    def _tx_params(self) -> dict[str, Any]:
        try:
            nonce = self.web3.eth.get_transaction_count(self.account.address, "pending")
        except OSError as e:
            raise TransportRetryableError(f"Network error: {e}") from e

        params: dict[str, Any] = {"from": self.account.address, "nonce": nonce}
        if self.runtime.chain_id is not None:
            params["chainId"] = self.runtime.chain_id
        if self.config.gas_limit is not None:
            params["gas"] = self.config.gas_limit
        if self.config.gas_price_gwei is not None:
            params["gasPrice"] = Web3.to_wei(self.config.gas_price_gwei, "gwei")
        return params

    def _send(self, tx: dict[str, Any]) -> Any:
        signed = self.account.sign_transaction(tx)
        try:
            tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        except OSError as e:
            raise TransportRetryableError(f"Network error: {e}") from e
        except ValueError as e:
            raise TransportPermanentError(f"Transaction rejected: {e}") from e

        # Once a hash exists the transaction may still land; never resubmit
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.config.timeout_seconds
            )
        except TimeExhausted as e:
            raise TransportPermanentError(
                f"Transaction {tx_hash.hex()} not mined within {self.config.timeout_seconds}s"
            ) from e

        if receipt["status"] != 1:
            raise TransportPermanentError(f"Transaction {tx_hash.hex()} reverted")
        return receipt

    def _create(self, contract_name: str, args: list[Any]) -> ContractHandle:
        artifact = self.artifacts.get(contract_name)
        factory = self.web3.eth.contract(abi=list(artifact.abi), bytecode=artifact.bytecode)

        try:
            tx = factory.constructor(*args).build_transaction(self._tx_params())
        except ContractLogicError as e:
            raise TransportPermanentError(f"{contract_name} constructor reverted: {e}") from e
        except OSError as e:
            raise TransportRetryableError(f"Network error: {e}") from e

        receipt = self._send(tx)
        address = receipt["contractAddress"]

        self.logger.info("Contract deployed", contract=contract_name, address=address,
                         transaction_hash=receipt["transactionHash"].hex())
        return ContractHandle(
            address=address,
            contract_name=contract_name,
            abi=artifact.abi,
            transaction_hash=receipt["transactionHash"].hex(),
            block_number=receipt["blockNumber"]
        )

    def _call(self, handle: ContractHandle, method: str, args: list[Any]) -> CallResult:
        contract = self.web3.eth.contract(address=handle.address, abi=list(handle.abi))
        function = getattr(contract.functions, method)(*args)

        read_only = any(
            entry.get("type") == "function" and entry.get("name") == method
            and entry.get("stateMutability") in ("view", "pure")
            for entry in handle.abi
        )

        try:
            if read_only:
                return CallResult(method=method, address=handle.address,
                                  return_value=function.call({"from": self.account.address}))
            tx = function.build_transaction(self._tx_params())
        except ContractLogicError as e:
            raise TransportPermanentError(f"{handle.contract_name}.{method} reverted: {e}") from e
        except OSError as e:
            raise TransportRetryableError(f"Network error: {e}") from e

        receipt = self._send(tx)
        return CallResult(
            method=method,
            address=handle.address,
            transaction_hash=receipt["transactionHash"].hex(),
            block_number=receipt["blockNumber"]
        )

    def health_check(self) -> bool:
        try:
            return bool(self.web3.is_connected())
        except Exception as e:
            self.logger.warning("Health check failed", error=str(e))
            return False
