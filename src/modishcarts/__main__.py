from modishcarts.app import main

main()
