from ghcr_proxy.cli_proxy import main

main()
