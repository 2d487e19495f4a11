"""HTTP gateway for the Kingdom interaction telemetry pipeline."""
