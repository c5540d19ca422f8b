"""Login-form selectors, outbound event names, and page-transition markers."""

# ── Outbound Events ──────────────────────────────────────────────────────────

EVENT_LOGIN_STATUS = "login-status"
EVENT_SCREENSHOT = "screenshot"
EVENT_PAGE_ERROR = "page-error"
EVENT_PAGE_DIALOG = "page-dialog"
EVENT_STREAM_STARTED = "stream-started"
EVENT_STREAM_ERROR = "stream-error"
EVENT_STREAM_STOPPED = "stream-stopped"
EVENT_INTERACTION_ERROR = "interaction-error"

# ── Inbound Commands ─────────────────────────────────────────────────────────

COMMAND_START_SESSION = "start-session"
COMMAND_USER_INTERACTION = "user-interaction"
COMMAND_STOP_SESSION = "stop-session"

# ── Login Status Values ──────────────────────────────────────────────────────

STATUS_NAVIGATING = "navigating"
STATUS_LOGGING_IN = "logging-in"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

MESSAGE_LOGIN_SUCCESS = "Successfully logged in! You can now interact with the platform."
MESSAGE_MANUAL_FALLBACK = "Platform loaded! Login manually if needed or interact with the platform."
MESSAGE_MANUAL_LOGIN = "Platform loaded! Please login manually and interact with the platform."
MESSAGE_NAVIGATION_FAILED = "Failed to load platform. Please contact support."

# ── Audit ────────────────────────────────────────────────────────────────────

ACTION_PLATFORM_ACCESS = "platform_access"
ACCESS_SUCCESS = "success"
ACCESS_FAILED = "failed"
AUDIT_USER_AGENT = "Playwright Browser Automation"

# ── Direct Field Probe ───────────────────────────────────────────────────────

DIRECT_EMAIL_SELECTORS = [
    "#Username",
    "#username",
    "#email",
    "#Email",
    "#user",
    "#login",
    'input[name="email"]',
    'input[name="username"]',
    'input[type="email"]',
]

DIRECT_PASSWORD_SELECTORS = [
    "#password",
    "#Password",
    "#pass",
    "#Pass",
    'input[name="password"]',
    'input[type="password"]',
]

DEDICATED_LOGIN_BUTTON = 'button[value="login"]'

GENERIC_SUBMIT_SELECTORS = [
    'button[type="submit"]',
    'input[type="submit"]',
    'button[class*="login"]',
    'button[class*="submit"]',
    "#login-button",
    "#submit-button",
    ".login-btn",
    ".submit-btn",
]

# ── Enhanced Field Probe ─────────────────────────────────────────────────────

ENHANCED_EMAIL_SELECTORS = [
    # name / type
    'input[type="email"]',
    'input[name="email"]',
    'input[name="username"]',
    'input[name="user"]',
    'input[name="login"]',
    'input[name="Email"]',
    'input[name="Username"]',
    # id
    'input[id="email"]',
    'input[id="username"]',
    'input[id="user"]',
    'input[id="login"]',
    'input[id="Email"]',
    'input[id="Username"]',
    "#email",
    "#username",
    "#user",
    # class
    "input.email",
    "input.username",
    'input[class*="email"]',
    'input[class*="username"]',
    'input[class*="user"]',
    # placeholder / aria-label
    'input[placeholder*="email" i]',
    'input[placeholder*="username" i]',
    'input[aria-label*="email" i]',
    'input[aria-label*="username" i]',
    # position inside a login form
    'form input[type="text"]:first-of-type',
    '.login-form input[type="text"]',
    '.signin-form input[type="text"]',
    '[class*="login"] input[type="text"]',
]

ENHANCED_PASSWORD_SELECTORS = [
    'input[type="password"]',
    'input[name="password"]',
    'input[name="pass"]',
    'input[name="Password"]',
    'input[id="password"]',
    'input[id="pass"]',
    'input[id="Password"]',
    "#password",
    "#pass",
    "input.password",
    'input[class*="password"]',
    'input[class*="pass"]',
    'input[placeholder*="password" i]',
    'input[aria-label*="password" i]',
]

ENHANCED_SUBMIT_SELECTORS = [
    'button[type="submit"]',
    'input[type="submit"]',
    'button[class*="login"]',
    'button[class*="submit"]',
    'button[class*="signin"]',
    'button[id*="login"]',
    'button[id*="submit"]',
    ".login-btn",
    ".submit-btn",
    ".signin-btn",
    "#login-btn",
    "#submit-btn",
    "form button:last-of-type",
    "form button",
    ".login-form button",
    ".signin-form button",
]

SUBMIT_BUTTON_TEXTS = ["sign in", "log in", "login", "submit", "enter"]

# ── Embedded-Frame Probe ─────────────────────────────────────────────────────

FRAME_EMAIL_SELECTOR = 'input[type="email"], input[name="email"], input[name="username"]'
FRAME_PASSWORD_SELECTOR = 'input[type="password"]'
FRAME_SUBMIT_SELECTOR = 'button[type="submit"], input[type="submit"]'

# ── Script-Level Injection ───────────────────────────────────────────────────

SCRIPT_EMAIL_SELECTORS = [
    'input[type="email"]',
    'input[name="email"]',
    'input[name="username"]',
    'input[placeholder*="email" i]',
    'input[placeholder*="username" i]',
]

# ── Page Transition Detection ────────────────────────────────────────────────

# Error fragments Playwright raises when the document under an in-flight
# call is replaced, i.e. the submitted form navigated away.
NAVIGATION_SIGNALS = [
    "Execution context was destroyed",
    "detached",
]

# Raised once the session owning the page has been torn down.
PAGE_CLOSED_SIGNALS = [
    "Target page, context or browser has been closed",
    "Target closed",
]
