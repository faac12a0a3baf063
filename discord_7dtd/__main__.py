import argparse, asyncio, logging, sys
from discord_7dtd import __version__
from discord_7dtd.classes.app_config import AppConfig
from discord_7dtd.classes.log_format import configure_logging
from discord_7dtd.exceptions.config import ConfigError
from discord_7dtd.relay_app import RelayApp
from discord_7dtd.utils import InstanceAlreadyRunning, acquire_instance_lock, check_for_updates

logger = logging.getLogger("main")


def build_parser():
    parser = argparse.ArgumentParser(prog="discord-7dtd")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run")
    run_parser.add_argument("--config", dest="config_path")
    run_parser.add_argument("--password")
    run_parser.add_argument("--ip")
    run_parser.add_argument("--port")
    run_parser.add_argument("--token")
    run_parser.add_argument("--channel", type=str)
    run_parser.add_argument("--prefix")
    run_parser.add_argument("--demo-mode", action="store_true", default=None)
    run_parser.add_argument("--skip-discord-auth", action="store_true", default=None)
    return parser


def config_overrides(args) -> dict:
    return {
        "password": args.password,
        "ip": args.ip,
        "port": args.port,
        "token": args.token,
        "channel": args.channel,
        "prefix": args.prefix,
        "demo-mode": args.demo_mode,
        "skip-discord-auth": args.skip_discord_auth,
    }


def startup_checks(config: AppConfig):
    logger.info(f"# 7DTD Discord Integration v{__version__} #")
    logger.info(
        "NOTICE: Remote connections to 7 Days to Die servers are not encrypted. To keep your server secure, "
        "do not run this application on a public network, such as a public wi-fi hotspot. "
        "Be sure to use a unique telnet password."
    )
    config.validate()
    if config.get_channel_id() is None:
        logger.warning("WARNING: No Discord channel specified! You will need to set one with 'setchannel #channelname'")
    if config.get_flag("allow-exec-command"):
        logger.warning('WARNING: Config option "allow-exec-command" is enabled. This may pose a security risk for your server.')


async def run(config: AppConfig) -> int:
    app = RelayApp(config)
    update_check = None
    if not config.get_flag("disable-version-check"):
        update_check = asyncio.create_task(check_for_updates(__version__))
    try:
        return await app.run()
    finally:
        if update_check is not None and not update_check.done():
            update_check.cancel()


def main(args=None):
    args = build_parser().parse_args(args)
    if args.command != "run":
        build_parser().print_help()
        return 1

    config = AppConfig(config_path=args.config_path, overrides=config_overrides(args))
    configure_logging(config.get_log_level())
    try:
        startup_checks(config)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    lock = None
    if not config.get_flag("allow-multiple-instances"):
        try:
            lock = acquire_instance_lock()
        except InstanceAlreadyRunning as e:
            logger.error(str(e))
            return 1

    try:
        return asyncio.run(run(config))
    finally:
        if lock is not None:
            lock.close()


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logging.info("Shutting down...")
        sys.exit(0)
    except Exception as e:
        import traceback
        logging.error(f"Stack trace: {traceback.format_exc()}")
        sys.exit(1)
