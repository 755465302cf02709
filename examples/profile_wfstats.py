# profile_wfstats.py

import numpy as np
import cProfile
import pstats

from wfstats.analysis import compute_statistics


def main():
    """Sets up and runs the profiling task."""
    print("Setting up profiling workload...")

    # --- 1. A long, partly masked waveform ---
    N = int(1e7)
    data = np.random.randn(N)
    mask = (np.random.rand(N) > 0.25).astype(np.int32)

    print(f"Profiling compute_statistics on a waveform of length {N}...")

    # --- 2. Run the function under cProfile ---
    command = "compute_statistics(data, interval=1e-3, mask=mask)"
    profiler_context = {"compute_statistics": compute_statistics, "data": data, "mask": mask}

    cProfile.runctx(
        command, globals=profiler_context, locals={}, filename="wfstats_profile.prof"
    )

    print("Profiling complete. Stats saved to 'wfstats_profile.prof'")

    # --- 3. Print a simple summary to the console ---
    print("\n--- Top 10 Functions by Cumulative Time ---")
    stats = pstats.Stats("wfstats_profile.prof")
    stats.sort_stats("cumulative").print_stats(10)


if __name__ == "__main__":
    main()
