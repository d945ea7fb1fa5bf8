"""taskcue-sim - watch taskcue schedule a workload live."""
