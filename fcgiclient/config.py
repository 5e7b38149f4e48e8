#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

import copy
import textwrap

from fcgiclient import util
from fcgiclient.errors import ConfigError

KNOWN_SETTINGS = []

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def wrap_method(func):
    def _wrapped(instance, *args, **kwargs):
        return func(*args, **kwargs)
    return _wrapped


def make_settings():
    settings = {}
    for s in KNOWN_SETTINGS:
        setting = s()
        settings[setting.name] = setting.copy()
    return settings


class Config(object):

    def __init__(self, **kwargs):
        self.settings = make_settings()
        for name, value in kwargs.items():
            self.set(name, value)

    def __getattr__(self, name):
        if name not in self.settings:
            raise AttributeError("No configuration setting for: %s" % name)
        return self.settings[name].get()

    def __setattr__(self, name, value):
        if name != "settings" and name in self.settings:
            raise AttributeError("Invalid access!")
        super(Config, self).__setattr__(name, value)

    def set(self, name, value):
        if name not in self.settings:
            raise AttributeError("No configuration setting for: %s" % name)
        self.settings[name].set(value)

    def copy(self):
        cfg = Config()
        for name, setting in self.settings.items():
            cfg.settings[name] = setting.copy()
        return cfg

    @property
    def timeout_seconds(self):
        return util.ms_to_seconds(self.settings['timeout'].get())


class SettingMeta(type):
    def __new__(cls, name, bases, attrs):
        super_new = super(SettingMeta, cls).__new__
        parents = [b for b in bases if isinstance(b, SettingMeta)]
        if not parents:
            return super_new(cls, name, bases, attrs)

        attrs["order"] = len(KNOWN_SETTINGS)
        attrs["validator"] = wrap_method(attrs["validator"])

        new_class = super_new(cls, name, bases, attrs)
        new_class.fmt_desc(attrs.get("desc", ""))
        KNOWN_SETTINGS.append(new_class)
        return new_class

    def fmt_desc(cls, desc):
        desc = textwrap.dedent(desc).strip()
        setattr(cls, "desc", desc)
        setattr(cls, "short", desc.splitlines()[0])


class Setting(object, metaclass=SettingMeta):
    name = None
    value = None
    section = None
    validator = None
    default = None
    short = None
    desc = None

    def __init__(self):
        if self.default is not None:
            self.set(self.default)

    def copy(self):
        return copy.copy(self)

    def get(self):
        return self.value

    def set(self, val):
        assert callable(self.validator), "Invalid validator: %s" % self.name
        self.value = self.validator(val)


def validate_bool(val):
    if isinstance(val, bool):
        return val
    if not isinstance(val, str):
        raise TypeError("Invalid type for casting: %s" % val)
    if val.lower().strip() == "true":
        return True
    elif val.lower().strip() == "false":
        return False
    else:
        raise ValueError("Invalid boolean: %s" % val)


def validate_pos_int(val):
    if not isinstance(val, int):
        val = int(val, 0)
    else:
        # Booleans are ints!
        val = int(val)
    if val < 0:
        raise ValueError("Value must be positive: %s" % val)
    return val


def validate_string(val):
    if val is None:
        return None
    if not isinstance(val, str):
        raise TypeError("Not a string: %s" % val)
    return val.strip()


def validate_loglevel(val):
    val = validate_string(val)
    if val is None or val.lower() not in LOG_LEVELS:
        raise ConfigError("Invalid log level: %r" % val)
    return val.lower()


class KeepAlive(Setting):
    name = "keep_alive"
    section = "Connection"
    validator = validate_bool
    default = False
    desc = """\
        Ask the application to keep the connection open after a request.

        Sets the FCGI_KEEP_CONN flag on every BEGIN_REQUEST record. Without
        it the application closes the socket once it has answered, so only
        one request can be issued per connection.
        """


class Timeout(Setting):
    name = "timeout"
    section = "Connection"
    validator = validate_pos_int
    default = 0
    desc = """\
        Read/write timeout in milliseconds.

        Applied to the socket when it is opened and used as the default
        bound for socket reads. Set to zero (the default) to block without
        limit.
        """


class MaxParams(Setting):
    name = "max_params"
    section = "Protocol"
    validator = validate_pos_int
    default = 1000
    desc = """\
        Maximum number of name-value pairs accepted in a server reply.

        Guards FCGI_GET_VALUES_RESULT decoding against oversized replies.
        """


class Loglevel(Setting):
    name = "loglevel"
    section = "Logging"
    validator = validate_loglevel
    default = "info"
    desc = """\
        The granularity of log output installed by ``glogging.setup``.

        Valid level names are:

        * debug
        * info
        * warning
        * error
        * critical
        """
