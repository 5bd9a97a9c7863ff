#=========================================================================
# cache_sim_test.py
#=========================================================================

import pytest

from mpcache_cl.CacheConfig       import CacheConfig
from mpcache_cl.CacheControllerCL import CacheControllerCL
from mpcache_cl.cache_sim         import parse_trace, run_trace, main

basic_trace = """\
# cycle port op addr data
0 0 wr 0x1000 0xdeadbeef
1 0 rd 0x1000
2 0 rd 0x1000    # hit again
2 1 rd 0x2000
"""

def test_parse_trace():
  trace = parse_trace( basic_trace.splitlines() )
  assert sorted( trace ) == [ 0, 1, 2 ]
  assert [ str( r ) for r in trace[2] ] == [ "0:rd:00001000", "1:rd:00002000" ]
  assert trace[0][0].data == 0xdeadbeef

@pytest.mark.parametrize( "line", [
  "0 0 rd",
  "0 0 xx 0x10",
  "0 0 wr 0x10",
  "0 0 rd 0x10 1 2",
])
def test_parse_trace_errors( line ):
  with pytest.raises( ValueError ):
    parse_trace( [ line ] )

def test_run_trace():
  ctrl = CacheControllerCL( CacheConfig() )
  ncycles, result = run_trace( ctrl, parse_trace( basic_trace.splitlines() ) )
  assert ncycles == 3
  assert ctrl.counters.hits   == 2
  assert ctrl.counters.misses == 2

def test_run_trace_retries_bank_conflicts():
  ctrl  = CacheControllerCL( CacheConfig( banking_enabled=True ) )
  trace = parse_trace([
    "0 0 rd 0x000",
    "0 1 rd 0x040",
    "1 1 rd 0x080",
  ])
  lines = []
  ncycles, _ = run_trace( ctrl, trace, line_trace=lines.append )
  # port 1 loses cycle 0, so its second request slips to cycle 2
  assert ncycles == 3
  assert len( lines ) == 3
  assert ctrl.counters.bank_conflicts == 1
  assert ctrl.counters.misses == 3

def test_main( tmp_path, capsys ):
  trace_file = tmp_path / "trace.txt"
  trace_file.write_text( basic_trace )
  assert main( [ str( trace_file ), "--policy", "FIFO", "--ways", "8", "--trace" ] ) == 0
  out = capsys.readouterr().out
  assert "{:<18} {}".format( "cycles", 3 ) in out
  assert "{:<18} {}".format( "hits", 2 ) in out
  assert "WayPredictor" in out

def test_main_bad_config( tmp_path ):
  trace_file = tmp_path / "trace.txt"
  trace_file.write_text( basic_trace )
  with pytest.raises( SystemExit ):
    main( [ str( trace_file ), "--cache-size", "1000" ] )

def test_main_bad_trace( tmp_path ):
  trace_file = tmp_path / "trace.txt"
  trace_file.write_text( "0 0 xx 0x1000\n" )
  with pytest.raises( SystemExit ):
    main( [ str( trace_file ) ] )

def test_main_bad_port( tmp_path ):
  trace_file = tmp_path / "trace.txt"
  trace_file.write_text( "0 5 rd 0x1000\n" )
  with pytest.raises( SystemExit ):
    main( [ str( trace_file ) ] )

def test_main_size_aliases( tmp_path, capsys ):
  trace_file = tmp_path / "trace.txt"
  trace_file.write_text( basic_trace )
  assert main( [ str( trace_file ), "--cache-size-bytes", "8192",
                 "--block-size-bytes", "32" ] ) == 0
  assert "{:<18} {}".format( "hits", 2 ) in capsys.readouterr().out
