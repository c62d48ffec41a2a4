import random
from types import MappingProxyType
from typing import Literal

Browsers = Literal['chrome', 'firefox']
Devices = Literal['windows', 'mac', 'linux', 'android', 'ios']

user_agents = MappingProxyType({
    "chrome_windows": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.6312.122 Safari/537.36"
    ),
    "chrome_mac": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.6312.122 Safari/537.36"
    ),
    "chrome_linux": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.6312.122 Safari/537.36"
    ),
    "chrome_android": (
        "Mozilla/5.0 (Linux; Android 13; SM-G991B) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.6312.122 Mobile Safari/537.36"
    ),
    "chrome_ios": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) "
        "CriOS/123.0.6312.122 Mobile/15E148 Safari/604.1"
    ),
    "firefox_windows": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:124.0) "
        "Gecko/20100101 Firefox/124.0"
    ),
    "firefox_mac": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7; rv:124.0) "
        "Gecko/20100101 Firefox/124.0"
    ),
    "firefox_linux": (
        "Mozilla/5.0 (X11; Linux x86_64; rv:124.0) "
        "Gecko/20100101 Firefox/124.0"
    ),
    "firefox_android": (
        "Mozilla/5.0 (Mobile; rv:124.0) Gecko/124.0 Firefox/124.0"
    ),
    "firefox_ios": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) FxiOS/124.0 "
        "Mobile/15E148 Safari/605.1.15"
    ),
})

DEFAULT_USER_AGENT = user_agents['chrome_windows']


def get_user_agent(
    browser: Browsers = 'chrome',
    device: Devices = 'windows'
) -> str:
    '''
    Get a User-Agent string for the specified browser and device.

    Parameters
    ----------
    browser : Browsers, optional
        by default 'chrome'
    device : Devices, optional
        by default 'windows'

    Returns
    -------
    str

    Raises
    ------
    KeyError
        If there is no User-Agent for the combination.
    '''
    return user_agents[f'{browser}_{device}']


def get_random_user_agent() -> str:
    return random.choice(list(user_agents.values()))
