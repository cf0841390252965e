"""
CPU scheduler simulator: memory-gated admission and SJF, Round Robin and
Priority-with-aging scheduling over simulated processes.
"""
