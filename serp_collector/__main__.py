from serp_collector.main import run

run()
