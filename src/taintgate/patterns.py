"""Default rule lists and field names for taintgate."""

# Tool names treated as shell command sources
SHELL_TOOL_NAMES: list[str] = [
    "Bash",
    "shell",
    "terminal",
    "run_command",
    "execute",
]

# Commands blocked regardless of taint level
ALWAYS_BLOCKED: list[str] = [
    "rm -rf /",
    "mkfs",
    "dd if=",
    ":(){:|:&};:",
    "> /dev/sda",
]

# Commands blocked once the session drops to the cautious tier
DANGEROUS_COMMANDS: list[str] = [
    # Deletion
    "rm -rf",
    "rm -r",
    "rmdir",
    "format",
    # Power state
    "shutdown",
    "reboot",
    "halt",
    "poweroff",
    "init 0",
    "init 6",
    # Process control
    "kill -9",
    "killall",
    "pkill",
    # Permissions and system services
    "chmod 777",
    "chmod -R",
    "chown -R",
    "iptables -F",
    "systemctl stop",
    "systemctl disable",
    # Databases
    "DROP TABLE",
    "DROP DATABASE",
    "TRUNCATE",
    "DELETE FROM",
    # Remote script execution
    "curl | sh",
    "curl | bash",
    "wget | sh",
    "wget | bash",
]

# Commands still allowed at the restricted tier (matched by executable name)
SAFE_COMMANDS: list[str] = [
    "ls",
    "dir",
    "pwd",
    "cd",
    "cat",
    "head",
    "tail",
    "echo",
    "whoami",
    "date",
    "uname",
    "hostname",
    "env",
    "printenv",
    "which",
    "where",
    "type",
    "file",
    "wc",
    "sort",
    "uniq",
    "grep",
    "find",
    "tree",
    "df",
    "du",
    "free",
    "top",
    "ps",
    "uptime",
    "git status",
    "git log",
    "git diff",
    "git branch",
]

# Glob patterns for trusted domains
TRUSTED_DOMAIN_PATTERNS: list[str] = [
    "*.github.com",
    "*.stackoverflow.com",
    "*.npmjs.com",
    "*.python.org",
    "*.mozilla.org",
    "*.microsoft.com",
    "*.typescriptlang.org",
    "*.nodejs.org",
    "*.developer.mozilla.org",
]

# Tool input fields that carry a URL directly, in priority order
URL_FIELDS: tuple[str, ...] = (
    "url",
    "href",
    "link",
    "target",
    "src",
    "source",
    "uri",
    "endpoint",
)

# Free-text tool input fields scanned for an embedded http(s) URL
URL_TEXT_FIELDS: tuple[str, ...] = ("command", "cmd", "script", "input")

# Tool input fields that may hold the shell command text
COMMAND_FIELDS: tuple[str, ...] = ("command", "cmd", "script", "input", "code", "content")
