"""Detection rules for container, JavaScript and Python sources."""