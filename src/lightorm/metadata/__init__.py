"""Record-type metadata: descriptors, registry and YAML loading."""
