"""
terminal-setup — interactive terminal environment bootstrapper.

Installs and configures zsh, Oh My Zsh, Powerlevel10k, plugins, a Nerd
font, rbenv + Ruby and colorls, one confirmed step at a time.
"""

__version__ = "0.1.0"
