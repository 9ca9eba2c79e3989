"""
Application constants for the GolfSim ball tracker.
"""

# Tracking modes (set from the user-facing layer)
MODE_OFF = 'off'
MODE_PREVIEW = 'preview'
MODE_GAME = 'game'

TRACKING_MODES = [
    MODE_OFF,
    MODE_PREVIEW,
    MODE_GAME,
]

# Simulator server endpoints
DEFAULT_SERVER_PORT = 7878
hsv_endpoint = '/get-hsv'
upload_endpoint = '/upload/'
ping_endpoint = '/ping'

# Multipart field name expected by the upload endpoint
upload_field_name = 'file'

# Remote threshold payload
hsv_payload_key = 'hsv_vals'
HSV_PAYLOAD_FIELDS = [
    'hue_min',
    'hue_max',
    'saturation_min',
    'saturation_max',
    'value_min',
    'value_max',
]

# Control file keys (endpoint -> tracker)
control_mode_key = 'mode'
control_server_host_key = 'server_host'
control_server_port_key = 'server_port'
