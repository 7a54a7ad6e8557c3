from amrex_reader.config import arcfg
from amrex_reader.data_structures import AMReXPlotfile
from amrex_reader.extraction import SubdomainExtractor
from amrex_reader.status import (
    ExtractionResult,
    LoadResult,
    Severity,
    StatusCodes,
    truncate_message,
)
from amrex_reader.utilities.exceptions import (
    AMReXDatasetNotLoaded,
    AMReXReaderException,
)
from amrex_reader.utilities.logger import arLogger as mylog


class DatasetContext:
    """
    Everything needed to serve extractions from one plotfile: the caller's
    status codes and the currently loaded dataset.

    A context starts unloaded.  :meth:`load_dataset` installs a new dataset
    only once it has been read completely; a failed load keeps whatever was
    loaded before.  Contexts are independent of each other but are not safe
    to share between threads without external locking.
    """

    def __init__(self):
        self.status_codes = StatusCodes()
        self.plotfile = None

    @property
    def codes_configured(self):
        return self.status_codes.configured

    @property
    def dataset_loaded(self):
        return self.plotfile is not None

    def configure_status_codes(self, no_error, severe, fatal):
        self.status_codes.configure(no_error, severe, fatal)

    def _message_length(self, message_length):
        if message_length is None:
            return arcfg.get("amrex_reader", "message_length")
        return message_length

    def load_dataset(self, path, message_length=None):
        """
        Read ``path/Header`` and ``path/Level_0/Cell_H`` and index the grids.

        Returns a :class:`LoadResult` with the extent of the union of all
        grids, the physical origin of its lower corner, the cell size and the
        time of the plotfile.
        """
        message_length = self._message_length(message_length)
        try:
            plotfile = AMReXPlotfile(path)
        except AMReXReaderException as err:
            mylog.error("Could not load %s: %s", path, err)
            return LoadResult(
                Severity.FATAL,
                self.status_codes.code_for(Severity.FATAL),
                truncate_message(str(err), message_length),
            )
        self.plotfile = plotfile
        return LoadResult(
            Severity.NOERROR,
            self.status_codes.code_for(Severity.NOERROR),
            "",
            domain_dimensions=plotfile.domain_dimensions,
            origin=plotfile.origin,
            spacing=plotfile.spacing,
            time=plotfile.current_time,
        )

    def extract_subdomain(self, query_lo, query_hi, out, message_length=None):
        """
        Copy the cells of the query box into *out*.

        ``query_lo``/``query_hi`` are inclusive corners counted from the lower
        corner of the loaded data.  *out* must hold
        ``3 * prod(query_hi - query_lo + 1)`` float64 values; component varies
        fastest, then axis 0, axis 1 and axis 2.
        """
        message_length = self._message_length(message_length)
        try:
            if self.plotfile is None:
                raise AMReXDatasetNotLoaded()
            extractor = SubdomainExtractor(
                self.plotfile,
                max_header_bytes=arcfg.get("amrex_reader", "fab_header_max_bytes"),
            )
            severity, message = extractor.extract(query_lo, query_hi, out)
        except AMReXReaderException as err:
            mylog.error("Extraction failed: %s", err)
            severity, message = Severity.FATAL, str(err)
        return ExtractionResult(
            severity,
            self.status_codes.code_for(severity),
            truncate_message(message, message_length),
        )

    def __repr__(self):
        state = repr(self.plotfile) if self.plotfile is not None else "unloaded"
        return f"DatasetContext({state}, {self.status_codes!r})"
