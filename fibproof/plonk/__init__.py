"""PLONK over BN254 with KZG commitments and public inputs."""
