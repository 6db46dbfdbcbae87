"""Line-level text handling: streaming reader, field normalization, header schema."""
