"""Order service: admits orders against the remote catalog and emits stock decrements."""
