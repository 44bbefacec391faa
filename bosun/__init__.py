"""bosun: vessel geofence alerting and alarm lifecycle core."""
