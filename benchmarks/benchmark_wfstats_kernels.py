#!/usr/bin/env python3
"""
benchmark_wfstats_kernels

Benchmarks the waveform statistics accumulator on 10 million points of
uniformly distributed random data, comparing the Numba kernel with the
NumPy reference kernel, with and without a mask.

Output:
    - Prints timing statistics for:
        * numba, no mask     [main case]
        * numba, masked      [reference]
        * numpy, no mask     [reference]
        * numpy, masked      [reference]

Notes:
    - This script avoids file I/O to benchmark the kernel itself.
    - Uses numpy for reproducible random number generation.
"""
import numpy as np
import time
from wfstats import WaveformStatistics


def report_stats(name, t):
    print(
        f"{name}: mean={np.mean(t):.3f}, median={np.median(t):.3f}, "
        f"std={np.std(t):.3f}, min={np.min(t):.3f}, max={np.max(t):.3f}"
    )


def bench_stats(data, mask, use_numba, label, n_runs):
    """
    Benchmark one statistics configuration.

    Parameters
    ----------
    data : np.ndarray
        Input samples
    mask : np.ndarray or None
        Integer mask, or None for all samples
    use_numba : bool
        Kernel selection
    label : str
        Label for the benchmark case
    n_runs : int
        Number of benchmark runs

    Returns
    -------
    np.ndarray
        Array of timing results in seconds
    """
    tvec = np.zeros(n_runs)
    print(f"Benchmark: {label} (nRuns={n_runs})")

    for i in range(n_runs):
        analyzer = WaveformStatistics(data, interval=0.5, mask=mask, use_numba=use_numba)

        t0 = time.perf_counter()
        result = analyzer.compute()
        tvec[i] = time.perf_counter() - t0

        del result
        del analyzer

        print(f"  run {i+1}/{n_runs}: {tvec[i]:.3f} s")

    print()
    return tvec


def main():
    """Main benchmark function."""
    N = 10_000_000
    np.random.seed(0)

    n_runs = 10

    print("--- wfstats kernel benchmark ---")
    print(f"N = {N} samples")
    print()

    y = np.random.rand(N) - 0.5
    mask = (np.random.rand(N) > 0.1).astype(np.int32)

    # --- Warm-up (JIT compile / on-disk cache load) ---
    y_warmup = np.random.rand(1000) - 0.5
    WaveformStatistics(y_warmup, mask=mask[:1000]).compute()
    WaveformStatistics(y_warmup).compute()
    print("Warm-up done.\n")

    t_nb = bench_stats(y, None, True, "numba, no mask  [main]", n_runs)
    t_nb_m = bench_stats(y, mask, True, "numba, masked    [reference]", n_runs)
    t_np = bench_stats(y, None, False, "numpy, no mask  [reference]", n_runs)
    t_np_m = bench_stats(y, mask, False, "numpy, masked    [reference]", n_runs)

    print("--- Summary (seconds) ---")
    report_stats("numba, no mask", t_nb)
    report_stats("numba, masked ", t_nb_m)
    report_stats("numpy, no mask", t_np)
    report_stats("numpy, masked ", t_np_m)

    print("\nDone.")


if __name__ == "__main__":
    main()
