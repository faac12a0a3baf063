import asyncio, errno, logging, socket
import requests

logger = logging.getLogger("utils")

GITHUB_AUTHOR = "LakeYS"
GITHUB_NAME = "7DTD-Discord"
RELEASES_URL = f"https://github.com/{GITHUB_AUTHOR}/{GITHUB_NAME}/releases"
LATEST_RELEASE_API = f"https://api.github.com/repos/{GITHUB_AUTHOR}/{GITHUB_NAME}/releases/latest"
INSTANCE_LOCK_PORT = 7383


class InstanceAlreadyRunning(Exception):
    pass


def acquire_instance_lock(port: int = INSTANCE_LOCK_PORT):
    """Hold a local port for as long as the process lives; a second copy can't bind it."""
    lock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        lock.bind(("127.0.0.1", port))
        lock.listen(1)
    except OSError as e:
        lock.close()
        if e.errno == errno.EADDRINUSE:
            raise InstanceAlreadyRunning(
                "ERROR: It appears that there is another instance of this application already running. "
                "Please make sure only one instance of this application is running at a time.\n\n"
                'To bypass this, enable "allow-multiple-instances" in the config.'
            ) from e
        logger.warning(f"WARNING: An unknown error has occurred. ({e})")
        return None
    return lock


def parse_version(text: str):
    return tuple(int(part) for part in text.lstrip("v").split("."))


def compare_versions(current: str, release: str) -> int:
    current_parts, release_parts = parse_version(current), parse_version(release)
    return (current_parts > release_parts) - (current_parts < release_parts)


def fetch_latest_release():
    response = requests.get(LATEST_RELEASE_API, headers={"user-agent": GITHUB_NAME}, timeout=10)
    response.raise_for_status()
    return response.json()


def report_version(current: str, release_data: dict):
    tag = release_data.get("tag_name") if isinstance(release_data, dict) else None
    if tag is None:
        logger.warning("WARNING: Unable to parse version data.")
        return None
    try:
        relative = compare_versions(current, tag)
    except ValueError:
        logger.warning(f"WARNING: Unable to parse version data ({tag}).")
        return None
    if relative == 1:
        logger.info(
            f"NOTICE: You are currently running v{current}. This build is considered unstable.\n"
            f"Check here for the latest stable versions of this script:\n {RELEASES_URL}"
        )
    elif relative == -1:
        logger.info(
            f"NOTICE: You are currently running v{current}. A newer version is available.\n"
            f"Check here for the latest version of this script:\n {RELEASES_URL}"
        )
    return relative


async def check_for_updates(current: str):
    loop = asyncio.get_running_loop()
    try:
        release_data = await loop.run_in_executor(None, fetch_latest_release)
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"ERROR: Unable to query version data. ({e})")
        return None
    return report_version(current, release_data)
