class WroPackError(ValueError):
    pass


class ConfigurationError(WroPackError):
    pass


class InvalidUriError(WroPackError):
    """
    Raised when a stylesheet location has no folder part to resolve a reference
    against.
    """


class UnresolvableReferenceError(WroPackError):
    """
    Raised when a url(...) reference is contained in a stylesheet whose location
    is not of any supported kind.
    """

    def __init__(self, css_location, image_url):
        self.css_location = css_location
        self.image_url = image_url
        super().__init__(
            "Could not replace {}, contained at location: {}".format(
                image_url, css_location
            )
        )
