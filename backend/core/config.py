# SMS60 Configuration Constants

# Serial Settings (RS232, 8N1, no handshake)
SERIAL_BAUDRATE = 9600
SERIAL_TIMEOUT_S = 0.5        # Read timeout
SERIAL_WRITE_TIMEOUT_S = 0.5  # Write timeout
DEFAULT_PORT_ENV = "SMS60_PORT"

# Protocol Timing
DELAY_DISPATCH = 0.5  # s, settle time after every dispatched command
DELAY_RESET = 5.0     # s, firmware reboot time after RST

# Motion Limits
MAX_ITERATION = 10000  # Status polls before a wait is abandoned
MAX_SPEED = 8191       # Firmware speed ceiling
MIN_SPEED = 1
BACKLASH = 1000        # steps, final approach is always from the positive side
SCALE_FACTOR = 0.00008 # mm/step, both axes
NUMBER_OF_AXES = 2

# Replies
STATUS_NO_MOTION = "MOTION=0"
STATUS_NO_REFERENCING = "REF=0"

# Instrument Identity
MANUFACTURER = "OWIS GmbH Staufen"
INSTRUMENT_TYPE = "SMS60"

# Diagnostics
HISTORY_SIZE = 500

# HTTP API
API_CORS_ORIGINS_ENV = "SMS60_CORS_ORIGINS"  # comma separated
API_CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]
