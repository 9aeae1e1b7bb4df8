"""
Route to application name resolution.

A request is attributed to an application by matching its route name
against an ordered map of route prefixes. The first prefix that matches
wins; the ``"*"`` entry is the default and is never matched here.
"""

DEFAULT_PATTERN = "*"
SEPARATOR = ":"
WILDCARD = "*"


def route_name(presenter, params=None, action_key="action"):
    """Build the route name for a presenter and its request parameters.

    ``route_name("Homepage", {"action": "default"})`` gives
    ``"Homepage:default"``.
    """
    name = presenter
    if params and params.get(action_key) is not None:
        name = "%s%s%s" % (name, SEPARATOR, params[action_key])
    return name


def resolve(route, app_map):
    """Return the application name for ``route`` or None when nothing matches."""
    if not app_map:
        return None

    for pattern, app_name in app_map.items():
        if pattern == DEFAULT_PATTERN:
            continue

        if pattern.endswith(WILDCARD):
            pattern = pattern[:-1]

        if pattern.startswith(SEPARATOR):
            pattern = pattern[1:]

        if route.startswith(pattern):
            return app_name

    return None
