"""Local chain: the execution environment the contracts run in.

Modules
-------
runtime
    ``Chain`` — accounts, balances, atomic transactions, blocks, receipts.
handle
    ``ContractHandle`` — signer-bound access to a deployed contract.
replay
    ``replay()`` — rebuild a chain from a transaction journal.
"""
