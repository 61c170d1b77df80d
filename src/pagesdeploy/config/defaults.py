"""Default configuration values for pagesdeploy."""

# Seconds to wait between polls of a stage. Queued, initialize and build
# stages usually run for a while; clone_repo and deploy finish quickly.
DEFAULT_POLL_INTERVALS: dict[str, float] = {
    "queued": 5.0,
    "initialize": 15.0,
    "clone_repo": 5.0,
    "build": 15.0,
    "deploy": 5.0,
}

# Interval for stage names the platform adds that are not listed above
DEFAULT_POLL_INTERVAL: float = 5.0

# Every Nth poll of a stage the deployment is checked for having moved on
ANOMALY_CHECK_EVERY: int = 5

# Log lines newer than now minus this many seconds are held back until the
# next poll, since stage completion shows up in the API with a small lag.
LOG_CLOCK_SKEW: float = 2.5

# Environment variable prefix for per-stage poll interval overrides
POLL_INTERVAL_ENV_PREFIX = "PAGESDEPLOY_POLL_INTERVAL_"

# Prefix of generated deploy hook names
DEPLOY_HOOK_PREFIX = "pagesdeploy"

CLOUDFLARE_API_URL = "https://api.cloudflare.com/client/v4"
CLOUDFLARE_DASHBOARD_URL = "https://dash.cloudflare.com"
# Live log socket of a deployment; {jwt} is filled from the /live endpoint
CLOUDFLARE_LIVE_LOGS_URL = (
    "wss://api.pages.cloudflare.com/logs/ws/get?startIndex=0&jwt={jwt}"
)
GITHUB_API_URL = "https://api.github.com"

# Seconds before an API request times out
DEFAULT_REQUEST_TIMEOUT: float = 30.0

# Seconds to wait for the live log socket to open
LIVE_LOGS_OPEN_TIMEOUT: float = 10.0
