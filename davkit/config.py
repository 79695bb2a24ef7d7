"""
Configuration file handling for get_client.

A configuration file is JSON (or YAML, if pyyaml is installed) holding
a dict of sections, each section a dict of settings:

    {
        "default": {
            "webdav_url": "https://dav.example.com/remote.php/dav",
            "webdav_user": "alice",
            "webdav_pass": "secret"
        },
        "media": {
            "inherits": "default",
            "webdav_url": "https://media.example.com/dav"
        },
        "everything": {"contains": ["default", "media"]}
    }

A section may inherit settings from another one, and a "meta"-section
may list other sections with the "contains" keyword.
"""

import json
import logging
import os
from fnmatch import fnmatch

log = logging.getLogger(__name__)


def _is_glob(section):
    return not set(section).isdisjoint(set("[*?"))


def expand_config_section(config, section="default", blacklist=None):
    """
    In the "normal" case, will return [ section ]

    We allow:

    * "*" for every enabled section in the config file
    * "Meta"-sections with the keyword "contains" followed by a list of section names, recursively
    * Glob patterns, like media_* for all sections starting with media_
    """
    if section == "*":
        return [x for x in config if not config[x].get("disable", False)]

    if _is_glob(section):
        results = []
        for name in config:
            if not fnmatch(name, section):
                continue
            ## Section names shouldn't contain []?* ... but in case they do, don't recurse
            expanded = [name] if _is_glob(name) else expand_config_section(config, name)
            results.extend(x for x in expanded if x not in results)
        return results

    if section not in config:
        return []

    if "contains" in config[section]:
        results = []
        blacklist = set(blacklist or ())
        blacklist.add(section)
        for subsection in config[section]["contains"]:
            if subsection in blacklist:
                continue
            for expanded in expand_config_section(config, subsection, blacklist):
                if expanded not in results:
                    results.append(expanded)
        return results

    if config[section].get("disable", False):
        return []
    return [section]


def config_section(config, section="default"):
    """The settings of a section, with everything it inherits merged in"""
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def read_config(fn):
    """
    Read a configuration file.  Without a file name the standard
    locations are tried in order.  Returns {} (or None, if no standard
    location has a file) when nothing usable is found.
    """
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config"
        for config_file in (
            f"{cfgdir}/davkit/davkit.conf",
            f"{cfgdir}/davkit/davkit.yaml",
            f"{cfgdir}/davkit/davkit.json",
            f"{cfgdir}/davkit.conf",
            "/etc/davkit/davkit.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        with open(fn, "rb") as config_file:
            content = config_file.read()
    except FileNotFoundError:
        log.info("no config file %s", fn)
        return {}

    try:
        return json.loads(content)
    except ValueError:
        pass

    ## Late import, yaml is an optional dependency
    try:
        import yaml
    except ImportError:
        log.error(f"config file {fn} exists but is not valid json, and pyyaml is not installed.")
        return {}
    try:
        cfg = yaml.safe_load(content)
    except yaml.YAMLError:
        log.error(f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax.")
        return {}
    if not isinstance(cfg, dict):
        log.error(f"config file {fn} does not hold a dict of sections.  It will be ignored")
        return {}
    return cfg
