# Fault-injection pattern detectors, one module per pattern.
