"""Solana JSON-RPC client."""

from memecoin_tracker.clients.solana_rpc.rpc_client import TOKEN_ACCOUNT_SIZE, SolanaRpcClient

__all__ = ["SolanaRpcClient", "TOKEN_ACCOUNT_SIZE"]
