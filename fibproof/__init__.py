"""
fibproof: prove a Fibonacci program and verify the proof on-chain.

    kernel / zkvm      the provable program and its execution environment
    orchestrator       setup, dry run, proving and local verification
    artifacts          proof bundle on disk and contract call data
    onchain            verification against the deployed contract
    provers            mock, cpu and network backends
    groth16 / plonk    the proof systems behind the cpu backend
"""

__version__ = "0.1.0"
