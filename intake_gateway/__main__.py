from intake_gateway.core.bootstrap import run

run()
