"""twig: declared branch dependencies and cascading rebases for stacked development."""
