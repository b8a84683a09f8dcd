"""
fibproof command line
=====================

    fibproof prove [--n 10] [--system groth16|plonk] [--mode mock|cpu|network]
    fibproof verify-onchain [--n 10] [--artifacts DIR] [--contract-address ADDR] [--rpc-url URL]
    fibproof vkey
    fibproof serve [--host 127.0.0.1] [--port 5000]

A ``.env`` file in the working directory is loaded first; flags override
the environment.

Exit status:
    0  success
    1  missing artifacts or any other pipeline error
    2  invalid configuration or arguments
    3  the verifier rejected the proof
    4  the RPC endpoint or proving service could not be reached
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from fibproof.artifacts import ArtifactPackager
from fibproof.config import Settings
from fibproof.errors import (
    ArtifactNotFoundError,
    ConfigurationError,
    FibproofError,
    TransportError,
    VerificationRejected,
)
from fibproof.log import setup_logger
from fibproof.onchain import (
    REJECTION_CAUSES,
    LocalVerifierContract,
    OnChainVerificationClient,
    Web3VerifierContract,
)
from fibproof.orchestrator import ProvingOrchestrator
from fibproof.provers import prover_for_mode
from fibproof.service import create_app
from fibproof.types import ProofRequest, ProofSystem, ProverMode
from fibproof.zkvm import FIBONACCI_PROGRAM

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2
EXIT_REJECTED = 3
EXIT_TRANSPORT = 4


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fibproof",
        description="Prove Fibonacci computations and verify the proofs on-chain.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    prove = sub.add_parser("prove", help="generate, verify and package a proof")
    prove.add_argument("--n", type=int, default=10, help="input of the Fibonacci program")
    prove.add_argument("--system", default="groth16", help="groth16 or plonk")
    prove.add_argument("--mode", default=None, help="mock, cpu or network (default: $SP1_PROVER)")
    prove.add_argument("--output-dir", default=None, help="artifact directory")
    prove.add_argument("--no-save", dest="save_artifacts", action="store_false",
                       help="do not write artifacts")
    prove.add_argument("--timeout", type=float, default=None, help="proof timeout in seconds")

    verify = sub.add_parser("verify-onchain", help="verify packaged artifacts against the contract")
    verify.add_argument("--n", type=int, default=10)
    verify.add_argument("--artifacts", default=None, help="artifact directory or call-data file")
    verify.add_argument("--contract-address", default=None)
    verify.add_argument("--rpc-url", default=None)
    verify.add_argument("--local", choices=["cpu", "mock"], default=None,
                        help="use an in-process verifier contract instead of the RPC endpoint")

    sub.add_parser("vkey", help="print the program verification key")

    serve = sub.add_parser("serve", help="run the proving service")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    return parser


# ─────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────

def cmd_prove(args, settings):
    settings = settings.override(
        prover_mode=ProverMode.parse(args.mode) if args.mode else None,
        output_dir=Path(args.output_dir) if args.output_dir else None,
        proof_timeout=args.timeout,
    )
    mode = settings.prover_mode
    request = ProofRequest(
        n=args.n,
        system=ProofSystem.parse(args.system),
        mode=mode,
        persist_artifacts=args.save_artifacts,
        output_dir=settings.output_dir,
    )

    print("SP1 Network EVM Proof Generation")
    print("================================")
    print(f"Input: n = {request.n}")
    print(f"System: {request.system.value}")
    print(f"Prover Mode: {mode.value}")
    print()

    prover = prover_for_mode(mode, settings)
    orchestrator = ProvingOrchestrator(prover, mode=mode)
    packager = ArtifactPackager(request.output_dir) if request.persist_artifacts else None
    outcome = orchestrator.run(request, packager=packager, timeout=settings.proof_timeout)

    result, proof, vk = outcome.result, outcome.proof, outcome.vk
    print(f"Fibonacci({max(result.n - 1, 0)}): {result.a}")
    print(f"Fibonacci({result.n}): {result.b}")
    print(f"Cycles: {outcome.report.total_instructions}")
    print()
    print("Proof generation completed successfully!")
    print("Summary:")
    print(f"   Input: {request.n}")
    print(f"   System: {request.system.value}")
    print(f"   VKey: {vk.bytes32()}")
    print(f"   Public Values: 0x{proof.public_values.hex()}")
    print(f"   Proof Size: {len(proof.bytes)} bytes")
    if outcome.bundle is not None:
        print(f"   Artifacts saved to: {request.output_dir}/")
    print()
    print("Next steps for on-chain verification:")
    print(f"1. Set FIBONACCI_PROGRAM_VKEY={vk.bytes32()} in your .env")
    print("2. Deploy the Fibonacci contract with that VKey")
    print(f"3. Run: fibproof verify-onchain --n {request.n}")
    return EXIT_OK


def cmd_verify_onchain(args, settings):
    settings = settings.override(
        contract_address=args.contract_address,
        rpc_url=args.rpc_url,
        output_dir=Path(args.artifacts) if args.artifacts else None,
    )
    if args.local:
        prover = prover_for_mode(args.local, settings)
        _, vk = prover.setup(FIBONACCI_PROGRAM)
        contract = LocalVerifierContract(prover, vk, mock=args.local == "mock")
        print("Contract: in-process verifier")
    else:
        contract = Web3VerifierContract(settings.contract_address, settings.rpc_url)
        print(f"Contract Address: {contract.address}")
        print(f"RPC URL: {settings.rpc_url}")

    outcome = OnChainVerificationClient(contract).verify_remote(settings.output_dir, n=args.n)
    print("Proof verification successful!")
    print(f"   n: {outcome.n}")
    print(f"   Fibonacci({max(outcome.n - 1, 0)}) = {outcome.a}")
    print(f"   Fibonacci({outcome.n}) = {outcome.b}")
    if outcome.contract_vkey is None:
        print("   Contract VKey: unavailable")
    else:
        print(f"   Contract VKey: {outcome.contract_vkey}")
    if outcome.vkey_matches is False:
        print("   Warning: the contract VKey differs from the packaged one")
    return EXIT_OK


def cmd_vkey(args, settings):
    print(FIBONACCI_PROGRAM.vk.bytes32())
    return EXIT_OK


def cmd_serve(args, settings):
    prover = prover_for_mode(ProverMode.CPU, settings)
    app = create_app(prover=prover, api_key=settings.network_private_key)
    app.run(host=args.host, port=args.port)
    return EXIT_OK


COMMANDS = {
    "prove": cmd_prove,
    "verify-onchain": cmd_verify_onchain,
    "vkey": cmd_vkey,
    "serve": cmd_serve,
}


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
        setup_logger(settings.log_level)
        return COMMANDS[args.command](args, settings)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except ArtifactNotFoundError as exc:
        print(f"Contract call data not found: {exc}", file=sys.stderr)
        print("   Please run: fibproof prove --system plonk", file=sys.stderr)
        return EXIT_ERROR
    except VerificationRejected as exc:
        print("Proof verification failed!", file=sys.stderr)
        print(f"   Error: {exc}", file=sys.stderr)
        print("   This might be due to:", file=sys.stderr)
        for cause in REJECTION_CAUSES:
            print(f"   - {cause}", file=sys.stderr)
        return EXIT_REJECTED
    except TransportError as exc:
        print(f"Network error: {exc}", file=sys.stderr)
        return EXIT_TRANSPORT
    except FibproofError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        # a backend failure caused by the proving service being unreachable
        if isinstance(exc.__cause__, TransportError):
            return EXIT_TRANSPORT
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
