"""
stackdeploy Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Settings file
DEFAULT_ENV_FILE = ".env"

# Settings keys always required for `up`
CORE_SETTINGS = (
    "DIGITALOCEAN_TOKEN",
    "CLOUDFLARE_API_TOKEN",
    "CLOUDFLARE_ZONE_ID",
    "DOMAIN_NAME",
    "JOPLIN_SUBDOMAIN",
    "POSTGRES_PASSWORD",
    "DO_REGION",
    "SSH_PRIVATE_KEY_PATH",
    "SSH_PUBLIC_KEY_PATH",
    "CERTBOT_MODE",
    "ACME_EMAIL",
)

# Settings keys required for `--destroy`
TEARDOWN_SETTINGS = (
    "DIGITALOCEAN_TOKEN",
    "CLOUDFLARE_API_TOKEN",
    "CLOUDFLARE_ZONE_ID",
    "DOMAIN_NAME",
    "DO_REGION",
    "SSH_PRIVATE_KEY_PATH",
    "SSH_PUBLIC_KEY_PATH",
)

# Feature flag -> settings it makes mandatory
S3_FLAG = "ENABLE_S3_STORAGE"
S3_SETTINGS = (
    "SPACES_ACCESS_KEY_ID",
    "SPACES_SECRET_ACCESS_KEY",
    "SPACES_BUCKET_NAME",
)

MAILER_FLAG = "MAILER_ENABLED"
MAILER_SETTINGS = (
    "MAILER_HOST",
    "MAILER_PORT",
    "MAILER_USERNAME",
    "MAILER_PASSWORD",
    "MAILER_NOREPLY_EMAIL",
    "MAILER_NOREPLY_NAME",
)

CONDITIONAL_SETTINGS = {
    S3_FLAG: S3_SETTINGS,
    MAILER_FLAG: MAILER_SETTINGS,
}

# Private key permissions accepted by ssh
ALLOWED_KEY_MODES = (0o600, 0o400)

# SSH
SSH_USER = "root"
SSH_PORT = 22
SSH_COMMAND_TIMEOUT = 60

# Readiness polling
SSH_WAIT_MAX_ATTEMPTS = 10
SSH_WAIT_DELAY = 10
SSH_CONNECTION_TIMEOUT = 10
SSH_SETTLE_DELAY = 30

# Terraform
TERRAFORM_DIR = "terraform"
DROPLET_RESOURCE = "digitalocean_droplet.notes_server"
OUTPUT_DROPLET_IP = "droplet_ip"
OUTPUT_DROPLET_ID = "droplet_id"

# Provider error text meaning "the new size has a smaller disk than the
# droplet, so it cannot be resized in place". Matched case-insensitively.
# Bump the version whenever the table changes.
RESIZE_CONFLICT_PATTERNS_VERSION = 2
RESIZE_CONFLICT_PATTERNS = (
    "smaller disk",
    "disk is smaller",
    "cannot resize to a smaller",
    "can not be resized to a smaller",
    "resize not supported",
    "resizing to a smaller disk",
    "disk size cannot be decreased",
)

# Ansible
ANSIBLE_DIR = "ansible"
ANSIBLE_PLAYBOOK = "playbook.yml"

# Remote host layout
STACK_ROOT = "/opt/notes-stack"
CERTBOT_WEBROOT_HOST = f"{STACK_ROOT}/certbot-www"
CERTBOT_WEBROOT = "/var/www/certbot"
LETSENCRYPT_DIR = "/etc/letsencrypt"
LETSENCRYPT_LIVE_DIR = f"{LETSENCRYPT_DIR}/live"
CERTBOT_IMAGE = "certbot/certbot"
REVERSE_PROXY_CONTAINER = "reverse-proxy"

# Log Configuration
LOG_DIR = "logs"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Redaction placeholder for secrets in logged commands
REDACTED = "***"
