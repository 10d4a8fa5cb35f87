# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
""" Defines custom exceptions raised while smoking a patch """


class SmokeError(RuntimeError):
    """ Base class of the failures a smoke run can end with.

    The class name is what the run result reports as the failure category.
    """

    def __init__(self, message, unit=None, logfile=None):
        super(SmokeError, self).__init__(message)
        self.unit = unit
        self.logfile = logfile


class ConfigurationError(SmokeError, ValueError):
    """ Bad or missing command line input, no work was started """


class ProvisioningError(SmokeError):
    """ Workspace setup or patch application failed """


class StageFailure(SmokeError):
    """ Build or lint failed within the preparation stage """


class PhaseFailure(SmokeError):
    """ A test phase failed """
