"""Translate an InvocationConfig into the appcfg argument vector."""

from typing import List, Optional

from appcfg_runner.models import InvocationConfig, ServerEntry, Settings


def _add_boolean_option(args: List[str], key: str, enabled: bool):
    if enabled:
        args.append(key)


def _add_string_option(args: List[str], key: str, value: Optional[str]):
    if value:
        args.append(key + value)


def _stored_server(config: InvocationConfig, settings: Optional[Settings]) -> Optional[ServerEntry]:
    if settings is None:
        return None
    return settings.get_server(config.server_id)


def build_common_arguments(config: InvocationConfig) -> List[str]:
    """Arguments every appcfg command needs: the SDK root and upload server."""
    args = ["--sdk_root=" + config.sdk_root]
    _add_string_option(args, "--server=", config.upload_server)
    return args


def build_arguments(config: InvocationConfig, settings: Optional[Settings] = None) -> List[str]:
    """
    Build the option list passed to appcfg ahead of the command name.

    Never fails: a server id without a settings entry is treated as absent
    here (resolve_credentials reports it).
    """
    server = _stored_server(config, settings)
    args = build_common_arguments(config)

    _add_boolean_option(args, "--disable_prompt", not config.interactive)

    stored_password = False
    if server is not None and not config.email:
        _add_string_option(args, "--email=", server.username)
        # Force appcfg to read the password from stdin instead of the console
        stored_password = server.password is not None
    else:
        _add_string_option(args, "--email=", config.email)

    _add_string_option(args, "--host=", config.host)

    if server is not None and not config.proxy:
        active_proxy = settings.get_active_proxy()
        if active_proxy is not None:
            _add_string_option(args, "--proxy=", active_proxy.spec)
    else:
        _add_string_option(args, "--proxy=", config.proxy)

    _add_boolean_option(args, "--passin", config.passin or stored_password)
    _add_boolean_option(args, "--enable_jar_splitting", config.split_jars)
    _add_boolean_option(args, "--retain_upload_dir", config.retain_upload_dir)

    return args
