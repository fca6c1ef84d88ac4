class ConfigurationError(ValueError):
    """
    raised for invalid settings. Always raised before any loci are processed

    for example if the window size is smaller than 2
    """

    pass
