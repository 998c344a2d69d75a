"""Binary specifications and upstream API constants."""

# Selenium release bucket, an S3 style XML listing of
# <release>/selenium-server-standalone-<version>.jar keys
SELENIUM_INDEX_URL = "https://selenium-release.storage.googleapis.com/"
SELENIUM_URL_TEMPLATE = "https://selenium-release.storage.googleapis.com/{release}/{artifact}-{version}.jar"
SELENIUM_ARTIFACT = "selenium-server-standalone"
MAX_INDEX_PAGES = 20

# Chrome for Testing endpoints
CHROME_INDEX_URL = (
    "https://googlechromelabs.github.io/chrome-for-testing/"
    "last-known-good-versions.json"
)
CHROME_CHANNEL = "Stable"
CHROMEDRIVER_URL_TEMPLATE = (
    "https://storage.googleapis.com/chrome-for-testing-public/"
    "{version}/{artifact}/chromedriver-{artifact}.zip"
)

# Standalone server process
DEFAULT_PORT = 4444
SERVER_RUNTIME = "java"
READY_POLL_INTERVAL = 0.25
STOP_TIMEOUT = 10.0

# Download streaming
CHUNK_SIZE = 8192
# No total limit for artifacts, only for a stalled connection
DOWNLOAD_CONNECT_TIMEOUT = 30.0
DOWNLOAD_READ_TIMEOUT = 60.0
PROGRESS_STEP = 0.01  # emit at most once per percent
PROGRESS_BYTES_STEP = 1024 * 1024  # when the size is unknown
TEMP_SUFFIX = ".part"
EXECUTABLE_MODE = 0o755
