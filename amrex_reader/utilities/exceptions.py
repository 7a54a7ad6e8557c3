class AMReXReaderException(Exception):
    def __init__(self, message=None, filename=None):
        Exception.__init__(self, message)
        self.filename = filename


# Dataset access exceptions:


class AMReXHeaderError(AMReXReaderException):
    """The plotfile Header or a level's Cell_H is missing or malformed."""


class AMReXFileOpenError(AMReXReaderException):
    def __init__(self, filename):
        AMReXReaderException.__init__(self, filename=filename)

    def __str__(self):
        return f"Failed to open {self.filename}"


class AMReXFABFormatError(AMReXReaderException):
    def __init__(self, filename, offset, reason):
        AMReXReaderException.__init__(self, filename=filename)
        self.offset = offset
        self.reason = reason

    def __str__(self):
        return f"Wrong data format in {self.filename} at offset {self.offset}: {self.reason}"


class AMReXDatasetNotLoaded(AMReXReaderException):
    def __str__(self):
        return "Dataset not loaded: call load_dataset before extract_subdomain"


# Caller-side exceptions:


class AMReXBufferError(AMReXReaderException):
    def __init__(self, reason):
        AMReXReaderException.__init__(self)
        self.reason = reason

    def __str__(self):
        return f"Invalid output buffer: {self.reason}"
