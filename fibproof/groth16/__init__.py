"""Groth16 over BN254: R1CS to QAP, CRS setup, proving and verifying."""
