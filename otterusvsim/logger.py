"""
Logging configuration for the USV autopilot simulator.

One main logger owns a console handler and a file handler. Every module of the
package creates its own named logger with addLog(), which shares the main
handlers once they exist. Log records carry the current simulation time so
messages emitted from inside the time loop can be matched to a tick.


Functions
---------
**Setup:**

    setupMain(fileName, fileFormat, fileLevel, outFormat, outLevel)
        Configure and return the main logger.

**Logger Management:**

    addLog(name)
        Create a module logger that uses the main handlers.
    noneLog(name)
        Strip a logger of its handlers (warnings only).
    removeLog(name)
        Remove a logger and close its unshared handlers.

**Handler Management:**

    addMainHandlers(subLog)
        Attach the main handlers to a module logger.
    removeHandlers(name)
        Detach all handlers from a logger, closing the unshared ones.
    deepRemoveHandler(handler)
        Detach a handler from every logger and close it.

**Custom Features:**

    customRecordFactory(args, kwargs)
        Add the simTime field to log records.
    CustomFormatter
        Bracketed function names and multi-line message prefixes.


Global Variables
----------------
log : logging.Logger
    Main logger instance, None until setupMain() is called.
consoleHandler : logging.StreamHandler
    Shared console handler.
fileHandler : logging.FileHandler
    Shared file handler.
simTime : str
    Simulation time written into every record, seconds with two decimals.


Notes
-----
The Simulator assigns logger.simTime at the start of each tick.
"""

from typing import Iterator, Optional
from datetime import datetime
import logging
import os

#-----------------------------------------------------------------------------#

# Logging levels
DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL

# Record fields
SIMTIME = '%(simTime)8s'
DATETIME = '%(asctime)s'
NAME  = '%(name)-8s'
LEVEL = '%(levelname)-7s'
FUNCTION = '%(funcName)s'
MESSAGE = '%(message)s'

# Line layouts, e.g. "|   12.40| ctrl     : WARNING > ..."
FMT_DATE = '%M:%S'
FMT_OUT = f"|{SIMTIME}| {NAME} : {LEVEL} > {MESSAGE}"
FMT_FILE = f"|{SIMTIME} {DATETIME}| {NAME} {LEVEL} {FUNCTION} : {MESSAGE}"

# Main logger name
MAIN_LOG = 'otterSim'

# Module state ---------------------------------------------------------------#

log = None                  # main logger
consoleHandler = None       # shared console handler
fileHandler = None          # shared file handler
subLogs = []                # module logger names from addLog()

oldFactory = logging.getLogRecordFactory()
simTime = '0.00'

###############################################################################

class CustomFormatter(logging.Formatter):
    """
    Formatter for simulator log lines.

    Function names are shown in padded brackets. A message spanning several
    lines, such as the Simulator configuration banner, gets the record prefix
    on every line so the time column stays aligned.
    """

    FUNC_WIDTH = 19

    def format(self, record):
        """Format a log record."""

        if not (record.funcName.startswith('[')):
            record.funcName = f"[{record.funcName}]".ljust(self.FUNC_WIDTH)

        text = record.msg
        if (isinstance(text, str) and ('\n' in text)):
            record = logging.makeLogRecord(record.__dict__)
            head = self._fmt.split(MESSAGE)[0]
            if (DATETIME in head):
                record.asctime = self.formatTime(record, self.datefmt)
            lead = head % record.__dict__
            record.msg = f"\n{lead}".join(text.splitlines())

        return super().format(record)

###############################################################################

def customRecordFactory(*args, **kwargs):
    """Create a log record stamped with the current simTime."""
    record = oldFactory(*args, **kwargs)
    record.simTime = simTime
    return record

###############################################################################

def _allLoggers()->Iterator[logging.Logger]:
    """Yield every registered logger, skipping placeholders."""
    for item in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(item, logging.Logger):
            yield item

###############################################################################

def _newConsoleHandler(fmt:str, level:int)->logging.Handler:
    """Build the shared console handler."""
    handler = logging.StreamHandler()
    handler.set_name('Console handler')
    handler.setLevel(level)
    handler.setFormatter(CustomFormatter(fmt))
    return handler

def _newFileHandler(fileName:str, fmt:str, level:int)->logging.Handler:
    """Build the shared file handler."""
    handler = logging.FileHandler(fileName)
    handler.set_name('File handler')
    handler.setLevel(level)
    handler.setFormatter(CustomFormatter(fmt, FMT_DATE))
    return handler

###############################################################################

def addMainHandlers(subLog:logging.Logger)->None:
    """Attach whichever main handlers exist to a module logger."""

    for handler in (consoleHandler, fileHandler):
        if (handler is not None):
            subLog.addHandler(handler)
    subLog.debug('%s logger activated', subLog.name)

###############################################################################

def setupMain(fileName:Optional[str] = MAIN_LOG+'.log',
              fileFormat:Optional[str] = FMT_FILE,
              fileLevel:int = DEBUG,
              outFormat:Optional[str] = FMT_OUT,
              outLevel:int = INFO,
              )->logging.Logger:
    """
    Configure and return the main logger.


    Parameters
    ----------
    fileName : str, default='otterSim.log'
        Log file path.
    fileFormat : str, optional
        Format string for the file handler. If None, no log file is written.
    fileLevel : int, default=DEBUG
        Minimum level written to the log file.
    outFormat : str, optional
        Format string for the console handler. If None, console output is
        disabled.
    outLevel : int, default=INFO
        Minimum level printed to the console.


    Returns
    -------
    log : logging.Logger
        Main logger.


    Notes
    -----
    - Installs the simTime record factory.
    - Every module logger registered by addLog() receives the main handlers.
    - Calling again while a main logger exists returns it unchanged.
    """

    global log, consoleHandler, fileHandler

    if (log is not None):
        return log

    logging.setLogRecordFactory(customRecordFactory)
    log = logging.getLogger(MAIN_LOG)
    log.setLevel(DEBUG)

    if (outFormat is not None):
        if (consoleHandler is None):
            consoleHandler = _newConsoleHandler(outFormat, outLevel)
        log.addHandler(consoleHandler)
        log.info('Console logging started')

    if ((fileFormat is not None) and (fileName is not None)):
        if (fileHandler is None):
            fileHandler = _newFileHandler(fileName, fileFormat, fileLevel)
        log.addHandler(fileHandler)
        log.info('File logging started at %s in %s',
                 datetime.now().strftime("%m/%d/%Y %H:%M:%S"),
                 os.path.basename(fileName))

    for name in subLogs:
        addMainHandlers(logging.getLogger(name))

    return log

###############################################################################

def addLog(name:str)->logging.Logger:
    """
    Create a module logger that shares the main handlers.

    The name is registered so that every later setupMain() call attaches its
    handlers too. An existing logger is returned unchanged.
    """

    if (name in logging.Logger.manager.loggerDict):
        return logging.getLogger(name)

    thisLog = logging.getLogger(name)
    thisLog.setLevel(DEBUG)
    subLogs.append(name)
    if (log is not None):
        addMainHandlers(thisLog)

    return thisLog

###############################################################################

def noneLog(name:str)->logging.Logger:
    """
    Strip a logger of its handlers and raise its level to WARNING.

    WARNING and above still reach stderr through the logging module's
    last-resort handler. Silencing the main logger closes the main handlers.
    """

    global log

    thisLog = logging.getLogger(name)
    thisLog.setLevel(WARNING)

    if (name == MAIN_LOG):
        for handler in list(thisLog.handlers):
            deepRemoveHandler(handler)
        log = thisLog
    else:
        removeHandlers(name)

    return thisLog

###############################################################################

def closeHandler(handler:logging.Handler)->None:
    """Close a handler and clear the matching module reference."""

    global consoleHandler, fileHandler

    handler.close()
    if (handler is consoleHandler):
        consoleHandler = None
    elif (handler is fileHandler):
        fileHandler = None

###############################################################################

def removeHandlers(name:str)->None:
    """Detach all handlers from a logger, closing those no other logger uses."""

    thisLog = logging.getLogger(name)
    for handler in list(thisLog.handlers):
        thisLog.removeHandler(handler)
        if not any((handler in l.handlers) for l in _allLoggers()):
            closeHandler(handler)

###############################################################################

def deepRemoveHandler(handler:logging.Handler)->None:
    """Detach a handler from every registered logger and close it."""

    for thisLog in _allLoggers():
        if (handler in thisLog.handlers):
            thisLog.removeHandler(handler)
    closeHandler(handler)

###############################################################################

def removeLog(name:str)->None:
    """
    Remove a logger and close its unshared handlers.

    Removing the main logger resets the module log to None so setupMain() can
    build a new one.
    """

    global log

    thisLog = logging.getLogger(name)
    removeHandlers(name)
    logging.Logger.manager.loggerDict.pop(name, None)
    if (name in subLogs):
        subLogs.remove(name)
    if (thisLog is log):
        log = None

###############################################################################
