#!/usr/bin/env python3
"""
Regev LWE + Private Information Retrieval (PIR) Demo

This demo walks through:
1. Encrypting and decrypting single bits
2. Adding ciphertexts homomorphically
3. Retrieving a database bit without revealing its index
4. How noise growth limits the number of summed records

Run this demo:
    python examples/pir_demo.py
"""

import logging
import time

import numpy as np
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from regevpir.lwe import (
    RegevScheme,
    decrypt,
    encrypt,
    gen_error_vec,
    gen_secret,
    simple_params,
)
from regevpir.pir import (
    LWEPIRProtocol,
    answer,
    database_from_bits,
    decode,
    gen_db,
    query,
)
from regevpir.ring import RingElement
from regevpir.runtime import MetricsCollector, PIRMetrics, ProtocolLogger, RegevPIRConfig

console = Console()


def demo_encrypt_decrypt():
    """Demonstrate the basic round trip."""
    console.print("\n[bold cyan]=" * 60)
    console.print("[bold cyan]Demo 1: Regev Encryption")
    console.print("[bold cyan]=" * 60)

    scheme = RegevScheme(seed=2024)
    params = scheme.params
    secret = scheme.keygen()

    console.print(f"\n[yellow]Parameters: q={params.q}, p={params.p}, n={params.n}, std_dev={params.std_dev}")
    console.print(f"[yellow]Noise budget q/(2p): {params.noise_budget:.1f}")

    for bit in (0, 1):
        ct = scheme.encrypt_bit(secret, bit)
        pt = scheme.decrypt(secret, ct)
        console.print(f"  Enc({bit}) = {ct}  ->  Dec = [green]{pt}")


def demo_homomorphism():
    """Demonstrate ciphertext addition."""
    console.print("\n[bold cyan]=" * 60)
    console.print("[bold cyan]Demo 2: Additive Homomorphism")
    console.print("[bold cyan]=" * 60)

    rng = np.random.default_rng(7)
    params = simple_params(rng)
    secret = gen_secret(params, rng)
    doubled = params.with_matrix(params.a + params.a)

    table = Table(title="Enc(b0) + Enc(b1) under 2A")
    table.add_column("b0", justify="center")
    table.add_column("b1", justify="center")
    table.add_column("Decrypted sum", justify="center", style="green")

    for b0 in (0, 1):
        for b1 in (0, 1):
            c0 = encrypt(params, secret, gen_error_vec(params, rng), RingElement(2, b0))
            c1 = encrypt(params, secret, gen_error_vec(params, rng), RingElement(2, b1))
            table.add_row(str(b0), str(b1), str(decrypt(doubled, secret, c0 + c1)))

    console.print(table)


def demo_pir_functions():
    """Demonstrate query / answer / decode step by step."""
    console.print("\n[bold cyan]=" * 60)
    console.print("[bold cyan]Demo 3: PIR, Step by Step")
    console.print("[bold cyan]=" * 60)

    rng = np.random.default_rng(11)
    params = simple_params(rng)
    secret = gen_secret(params, rng)
    db = database_from_bits([1, 0, 1, 1, 0])
    console.print(f"\n[yellow]Database: {[r.value for r in db]}")

    for idx in (1, 2):
        q = query(params, idx, secret, len(db), rng)
        result = answer(params, q, db)
        bit = decode(params, secret, result)
        console.print(
            f"  Index {idx}: server summed {result.selected_records} ciphertexts, "
            f"client decoded [green]{bit}"
        )

    console.print("\n[cyan]The server only ever sees ciphertexts and its own plaintext bits.")


def demo_protocol():
    """Demonstrate the complete protocol with logging and metrics."""
    console.print("\n[bold cyan]=" * 60)
    console.print("[bold cyan]Demo 4: Complete Protocol")
    console.print("[bold cyan]=" * 60)

    db = gen_db(32, np.random.default_rng(3))
    logger = ProtocolLogger(name="regevpir.demo", handlers=[logging.NullHandler()])
    metrics = PIRMetrics(MetricsCollector())
    pir = LWEPIRProtocol(db, seed=5, logger=logger, metrics=metrics)

    correct = 0
    start = time.time()
    for i in range(len(db)):
        if pir.retrieve(i).bit == db[i].value:
            correct += 1
    elapsed = time.time() - start

    console.print(f"\n[yellow]Retrieved {correct}/{len(db)} records correctly in {elapsed*1000:.1f}ms")

    summary = metrics.get_summary()
    console.print(f"  Avg answer latency: {summary['answers']['latency']['avg']:.2f}ms")
    console.print(f"  Events logged: {len(logger.get_recent_events(count=1000))}")


def demo_noise_growth():
    """Show decoding failures once summed noise exceeds the budget."""
    console.print("\n[bold cyan]=" * 60)
    console.print("[bold cyan]Demo 5: Noise Growth")
    console.print("[bold cyan]=" * 60)

    table = Table(title="All-ones database, retrieval accuracy vs. noise")
    table.add_column("std_dev", justify="right")
    table.add_column("Records", justify="right")
    table.add_column("Correct", justify="right", style="green")

    for std_dev in (6.4, 60.0, 200.0):
        config = RegevPIRConfig()
        config.lwe.std_dev = std_dev
        config.pir.record_events = False
        config.monitoring.metrics_enabled = False

        db = [1] * 24
        pir = LWEPIRProtocol(db, seed=1, config=config)
        correct = sum(pir.retrieve(i).bit == 1 for i in range(len(db)))
        table.add_row(f"{std_dev:.1f}", str(len(db)), f"{correct}/{len(db)}")

    console.print(table)
    console.print("\n[yellow]Decryption errors are silent: choose parameters for the worst case.")


def main():
    """Run all demos."""
    console.print(Panel.fit(
        "[bold green]Regev LWE + PIR Demo",
        subtitle="Lattice-based single-server PIR"
    ))

    demo_encrypt_decrypt()
    demo_homomorphism()
    demo_pir_functions()
    demo_protocol()
    demo_noise_growth()

    console.print("\n[bold green]Demo complete!\n")


if __name__ == "__main__":
    main()
