#=========================================================================
# cache-sim
#=========================================================================
# Trace-driven driver for the cache controller.
#
# Trace lines look like
#
#   <cycle> <port> rd <addr>
#   <cycle> <port> wr <addr> <data>
#
# with numbers in any base Python's int(x, 0) accepts and '#' starting a
# comment. Requests issued on the same cycle are presented together. A
# port denied by the arbiter keeps its request and retries it on the
# next cycle, delaying any later requests on that port.
#
# Usage:
#   cache-sim trace.txt --policy LRU --ways 8 --trace

import argparse
import sys
from collections import defaultdict, deque

from .CacheConfig       import CacheConfig, POLICIES
from .CacheControllerCL import CacheControllerCL
from .CacheExceptions   import ConfigError, InvalidRequest
from .CacheMsgs         import mk_req

#-------------------------------------------------------------------------
# parse_trace
#-------------------------------------------------------------------------

def parse_trace( lines ):

  trace = defaultdict( list )

  for lineno, line in enumerate( lines, 1 ):

    line = line.split( '#', 1 )[0].strip()
    if not line:
      continue

    fields = line.split()
    if len( fields ) not in ( 4, 5 ):
      raise ValueError( "line {}: expected 'cycle port rd|wr addr [data]'".format( lineno ) )

    cycle, port, type_, addr = fields[:4]
    data = int( fields[4], 0 ) if len( fields ) == 5 else None

    if type_ not in ( 'rd', 'wr' ):
      raise ValueError( "line {}: unknown request type {!r}".format( lineno, type_ ) )
    if type_ == 'wr' and data is None:
      raise ValueError( "line {}: write without data".format( lineno ) )

    trace[ int( cycle, 0 ) ].append( mk_req( type_, int( port, 0 ), int( addr, 0 ), data ) )

  return trace

#-------------------------------------------------------------------------
# run_trace
#-------------------------------------------------------------------------
# Returns the number of cycles simulated and the last CycleResult.

def run_trace( ctrl, trace, prefetch_hint=False, qos_mask=None,
               low_power=False, line_trace=None ):

  queues = defaultdict( deque )
  last   = max( trace ) if trace else -1
  cycle  = 0
  result = None

  while cycle <= last or any( queues.values() ):

    for req in trace.get( cycle, [] ):
      queues[req.port].append( req )

    reqs = [ queues[port][0] for port in sorted( queues ) if queues[port] ]

    result = ctrl.advance( reqs, prefetch_hint=prefetch_hint,
                           qos_mask=qos_mask, low_power=low_power )

    for req, resp in zip( reqs, result.resps ):
      if resp.ready:
        queues[req.port].popleft()

    if line_trace is not None:
      line_trace( "{:4d}: {}".format( cycle, ctrl.line_trace() ) )

    cycle += 1

  return cycle, result

#-------------------------------------------------------------------------
# Command line
#-------------------------------------------------------------------------

def mk_parser():

  p = argparse.ArgumentParser( prog='cache-sim',
                               description="Cycle-level multi-port cache simulator" )

  p.add_argument( "trace_file", help="request trace ('-' for stdin)" )

  p.add_argument( "--address-width", dest="address_width", type=int )
  p.add_argument( "--cache-size", "--cache-size-bytes", dest="cache_size", type=int, help="bytes" )
  p.add_argument( "--block-size", "--block-size-bytes", dest="block_size", type=int, help="bytes" )
  p.add_argument( "--ways",          dest="ways",          type=int )
  p.add_argument( "--ports",         dest="client_ports",  type=int )
  p.add_argument( "--data-width",    dest="data_width",    type=int, help="bits" )
  p.add_argument( "--policy",        dest="policy",        choices=POLICIES )
  p.add_argument( "--num-banks",     dest="num_banks",     type=int )

  def flag( name, dest, value, help ):
    p.add_argument( name, dest=dest, action='store_const', const=value, help=help )

  flag( "--write-through",     "write_back",          False, "write-through instead of write-back" )
  flag( "--no-write-allocate", "write_allocate",      False, "bypass the cache on write misses" )
  flag( "--no-ecc",            "ecc_enabled",         False, "disable SECDED protection" )
  flag( "--no-way-predict",    "way_predict_enabled", False, "disable way prediction" )
  flag( "--no-prefetch",       "prefetch_enabled",    False, "disable stride prefetching" )
  flag( "--no-adaptive",       "ai_adaptive_enabled", False, "disable pattern classification" )
  flag( "--banking",           "banking_enabled",     True,  "enable bank-conflict arbitration" )

  p.add_argument( "--qos-mask", type=lambda x: int( x, 0 ),
                  help="allowed victim ways bitmask (enables QoS)" )
  p.add_argument( "--low-power",     action="store_true" )
  p.add_argument( "--prefetch-hint", action="store_true" )
  p.add_argument( "--trace",         action="store_true", help="print a line trace per cycle" )

  return p

def main( argv=None ):

  p    = mk_parser()
  args = p.parse_args( argv )

  if args.qos_mask is not None:
    args.qos_enabled = True

  try:
    cfg = CacheConfig.from_args( args )
  except ConfigError as e:
    p.error( str( e ) )

  try:
    if args.trace_file == '-':
      trace = parse_trace( sys.stdin )
    else:
      with open( args.trace_file ) as f:
        trace = parse_trace( f )
  except ValueError as e:
    p.error( str( e ) )

  ctrl = CacheControllerCL( cfg )

  try:
    ncycles, _ = run_trace( ctrl, trace,
                            prefetch_hint = args.prefetch_hint,
                            qos_mask      = args.qos_mask,
                            low_power     = args.low_power,
                            line_trace    = print if args.trace else None )
  except InvalidRequest as e:
    p.error( str( e ) )

  print( "{:<18} {}".format( "cycles", ncycles ) )
  print( ctrl.counters.report() )
  if ctrl.way_pred is not None:
    print( ctrl.way_pred.report() )

  return 0

if __name__ == "__main__":
  sys.exit( main() )
